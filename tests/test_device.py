"""Tests for device queries, streams and the exception hierarchy."""

from __future__ import annotations

import logging
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

import blascheck
from blascheck import device, streams
from blascheck.exceptions import (
    BlasCheckError,
    ConfigError,
    GuardCorruptionError,
    NumericalMismatchError,
    StatusMismatchError,
)


class TestDeviceQueries:

    def test_cpu_only(self, cpu_only_backend: None) -> None:
        assert not device.is_available()
        assert device.device_count() == 0
        assert device.get_device_name() == "cpu"
        assert device.query_device_property() == []

    def test_set_device_out_of_range(self, cpu_only_backend: None) -> None:
        with pytest.raises(ValueError, match="out of range"):
            device.set_device(0)

    def test_query_properties(self, rocm_backend: None) -> None:
        props = SimpleNamespace(name="AMD Instinct MI300X", total_memory=192 * 1024 ** 3,
                                multi_processor_count=304, major=9, minor=4,
                                gcnArchName="gfx942:sramecc+:xnack-")
        with patch("torch.cuda.device_count", return_value=1), \
                patch("torch.cuda.get_device_properties", return_value=props):
            info = device.query_device_property()
        assert info == [{
            "id": 0,
            "name": "AMD Instinct MI300X",
            "total_memory_mb": 192 * 1024,
            "multi_processor_count": 304,
            "capability": "gfx942:sramecc+:xnack-",
        }]

    def test_capability_without_gcn_arch(self, cuda_backend: None) -> None:
        props = SimpleNamespace(name="NVIDIA H100", total_memory=80 * 1024 ** 3,
                                multi_processor_count=132, major=9, minor=0)
        with patch("torch.cuda.device_count", return_value=1), \
                patch("torch.cuda.get_device_properties", return_value=props):
            assert device.query_device_property()[0]["capability"] == "9.0"


class TestStreams:

    def test_cpu_has_no_stream(self) -> None:
        assert streams.current_stream("cpu") is None

    def test_synchronize_none_is_a_no_op(self) -> None:
        streams.synchronize(None)

    def test_synchronize_stream(self) -> None:
        stream = MagicMock()
        streams.synchronize(stream)
        stream.synchronize.assert_called_once()

    def test_use_stream_none(self) -> None:
        with streams.use_stream(None):
            pass


class TestExceptions:

    def test_hierarchy(self) -> None:
        assert issubclass(ConfigError, BlasCheckError)
        assert issubclass(GuardCorruptionError, BlasCheckError)
        assert issubclass(StatusMismatchError, AssertionError)
        assert issubclass(NumericalMismatchError, AssertionError)

    def test_status_mismatch_message(self) -> None:
        err = StatusMismatchError(0, 3, "spr2(x=None)")
        assert str(err) == "spr2(x=None): expected 3, got 0"
        assert err.expected == 3

    def test_numerical_mismatch_without_mode(self) -> None:
        assert str(NumericalMismatchError("off by one")) == "off by one"


class TestLogging:

    def test_set_log_level(self) -> None:
        root = logging.getLogger("blascheck")
        old = root.level
        try:
            blascheck.set_log_level("DEBUG")
            assert root.level == logging.DEBUG
            with pytest.raises(ValueError, match="Unknown log level"):
                blascheck.set_log_level("nonsense")
            assert root.level == logging.DEBUG
        finally:
            root.setLevel(old)

    def test_env_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        root = logging.getLogger("blascheck")
        old = root.level
        monkeypatch.setenv("BLASCHECK_LOG_LEVEL", "error")
        try:
            blascheck.set_log_level(None)
            assert root.level == logging.ERROR
        finally:
            root.setLevel(old)
