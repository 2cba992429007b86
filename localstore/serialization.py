"""JSON codec for stored documents."""

import json
from typing import Any

Document = Any


def encode_document(value: Document) -> bytes:
    """Serialize a document to compact UTF-8 JSON.

    Raises:
        TypeError: If the value is not JSON-serializable.
        ValueError: If the value contains circular references.
    """
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def decode_document(data: bytes) -> Document:
    """Deserialize bytes produced by encode_document."""
    return json.loads(data.decode("utf-8"))
