from pathlib import Path
from typing import Final

DEFAULT_STORE_DIR = Path.home() / "localDataStore"

# On-disk layout: {root}/{key}/value.json
VALUE_FILE_NAME: Final = "value.json"

# Store limits
DEFAULT_CAPACITY = 1024 * 1024 * 1024  # 1 GiB
MAX_KEY_LENGTH: Final = 32  # bytes, UTF-8
MAX_VALUE_SIZE: Final = 16384  # bytes of serialized document

# TTL eviction
SWEEP_PERIOD = 2.0  # seconds between sweeper passes

# Advisory lock retry policy
LOCK_RETRIES = 10  # retries after the first failed attempt
LOCK_RETRY_INTERVAL = 1.0  # seconds before the first retry
LOCK_BACKOFF_FACTOR = 1.0  # 1.0 keeps the interval fixed
