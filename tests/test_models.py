"""Tests for configuration models and the store error type."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from localstore.errors import StoreError
from localstore.models.model_store import ErrorKind, StoreConfig, StoreStats
from localstore.serialization import decode_document, encode_document


class TestStoreConfig:
    """Tests for the StoreConfig model."""

    def test_defaults(self) -> None:
        config = StoreConfig()
        assert config.path is None
        assert config.capacity == 1073741824
        assert config.sweep_period == 2.0
        assert config.max_key_length == 32
        assert config.max_value_size == 16384
        assert config.lock_retries == 10
        assert config.lock_retry_interval == 1.0
        assert config.lock_backoff_factor == 1.0
        assert config.lock_max_delay is None

    def test_empty_path_means_default(self) -> None:
        assert StoreConfig(path="").path is None
        assert StoreConfig(path="   ").path is None

    def test_path_coerced(self) -> None:
        assert StoreConfig(path="/tmp/fd").path == Path("/tmp/fd")

    @pytest.mark.parametrize(
        "field,value",
        [
            ("capacity", 0),
            ("sweep_period", 0),
            ("max_key_length", 0),
            ("max_value_size", 0),
            ("lock_retries", -1),
            ("lock_retry_interval", -0.5),
            ("lock_backoff_factor", 0.5),
            ("lock_max_delay", 0),
        ],
    )
    def test_invalid_values(self, field: str, value) -> None:
        with pytest.raises(ValidationError):
            StoreConfig(**{field: value})


class TestStoreStats:
    """Tests for the StoreStats model."""

    def test_usage_percent(self) -> None:
        stats = StoreStats(path="/x", capacity=200, used_bytes=50, entry_count=2, pending_evictions=0)
        assert stats.usage_percent == 25.0
        assert stats.model_dump()["usage_percent"] == 25.0

    def test_usage_percent_zero_capacity(self) -> None:
        stats = StoreStats(path="/x", capacity=0, used_bytes=0, entry_count=0, pending_evictions=0)
        assert stats.usage_percent == 0.0


class TestStoreError:
    """Tests for the tagged StoreError."""

    def test_only_lock_timeout_is_transient(self) -> None:
        for kind in ErrorKind:
            error = StoreError(kind, "msg")
            assert error.transient is (kind is ErrorKind.LOCK_TIMEOUT)

    def test_str_includes_kind_and_key(self) -> None:
        error = StoreError(ErrorKind.INVALID_KEY, "Key cannot be empty", key="k1")
        assert str(error) == "[invalid_key] Key cannot be empty (key='k1')"
        assert str(StoreError(ErrorKind.QUOTA_EXCEEDED, "full")) == "[quota_exceeded] full"

    def test_is_an_exception(self) -> None:
        with pytest.raises(StoreError) as exc_info:
            raise StoreError(ErrorKind.IO_FAILURE, "disk")
        assert exc_info.value.kind is ErrorKind.IO_FAILURE
        assert exc_info.value.message == "disk"


class TestSerialization:
    """Tests for the document codec."""

    def test_compact_utf8(self) -> None:
        assert encode_document({"a": [1, 2], "b": "ü"}) == '{"a":[1,2],"b":"ü"}'.encode("utf-8")

    def test_decode(self) -> None:
        assert decode_document(b'{"a":1}') == {"a": 1}

    def test_rejects_unserializable(self) -> None:
        with pytest.raises(TypeError):
            encode_document({"a": {1, 2}})
