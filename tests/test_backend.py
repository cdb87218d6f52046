"""Tests for backend detection and device resolution (_backend)."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from blascheck import _backend
from blascheck._backend import Backend, resolve_device


class TestBackendEnum:

    def test_values(self) -> None:
        assert Backend.ROCM.value == "rocm"
        assert Backend.CUDA.value == "cuda"
        assert Backend.CPU.value == "cpu"


class TestDetection:
    """Tests for backend detection (uses conftest fixtures)."""

    def test_cpu_only(self, cpu_only_backend: None) -> None:
        assert _backend.preferred_backend() == Backend.CPU
        assert not _backend.has_gpu()
        assert not _backend.has_cuda()
        assert not _backend.has_rocm()

    def test_cuda_detected(self, cuda_backend: None) -> None:
        assert _backend.preferred_backend() == Backend.CUDA
        assert _backend.has_cuda()
        assert _backend.has_gpu()

    def test_rocm_detected(self, rocm_backend: None) -> None:
        assert _backend.preferred_backend() == Backend.ROCM
        assert _backend.has_rocm()
        assert not _backend.has_cuda()

    def test_cpu_always_last(self) -> None:
        backends = _backend.detect_backends()
        assert backends[-1] == Backend.CPU

    def test_rocm_from_hip_version(self) -> None:
        fake_torch = MagicMock()
        fake_torch.version.hip = "6.1.0"
        fake_torch.cuda.is_available.return_value = True
        fake_torch.cuda.device_count.return_value = 2
        with patch("blascheck._backend._import_torch", return_value=fake_torch):
            assert _backend.detect_backends() == (Backend.ROCM, Backend.CPU)

    def test_cuda_build_is_not_rocm(self) -> None:
        fake_torch = MagicMock()
        fake_torch.version.hip = None
        fake_torch.cuda.is_available.return_value = True
        fake_torch.cuda.device_count.return_value = 1
        with patch("blascheck._backend._import_torch", return_value=fake_torch):
            assert _backend.detect_backends() == (Backend.CUDA, Backend.CPU)

    def test_detection_failure_falls_back_to_cpu(self) -> None:
        fake_torch = MagicMock()
        fake_torch.version.hip = None
        fake_torch.cuda.is_available.side_effect = RuntimeError("driver too old")
        with patch("blascheck._backend._import_torch", return_value=fake_torch):
            assert _backend.detect_backends() == (Backend.CPU,)


class TestResolveDevice:

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BLASCHECK_DEVICE", "cpu")
        assert resolve_device() == "cpu"

    def test_default_follows_backend(self, cuda_backend: None,
                                     monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("BLASCHECK_DEVICE")
        assert resolve_device() == "cuda"

    def test_default_on_cpu(self, cpu_only_backend: None,
                            monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("BLASCHECK_DEVICE")
        assert resolve_device() == "cpu"

    def test_cuda_passthrough(self, cuda_backend: None) -> None:
        assert resolve_device("cuda") == "cuda"
        assert resolve_device("cuda:1") == "cuda:1"

    def test_hip_translated(self, rocm_backend: None) -> None:
        assert resolve_device("hip") == "cuda"
        assert resolve_device("hip:2") == "cuda:2"
        assert resolve_device("rocm:0") == "cuda:0"

    def test_cuda_on_cpu_system(self, cpu_only_backend: None) -> None:
        """On CPU-only, GPU strings fall back to cpu."""
        assert resolve_device("cuda") == "cpu"
        assert resolve_device("hip:0") == "cpu"

    def test_cpu_unchanged(self, cuda_backend: None) -> None:
        assert resolve_device("cpu") == "cpu"
