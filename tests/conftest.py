"""Shared test fixtures for blascheck.

These fixtures simulate different hardware configurations (CPU-only, CUDA,
ROCm) without requiring actual hardware, so the suite runs in CI.

- Backend detection is mocked at the ``blascheck._backend`` level, so we
  control what the harness *thinks* is available.
- Cached detection is cleared around every test.
- ``BLASCHECK_DEVICE`` is pinned to ``cpu`` so the suite behaves the same on
  GPU machines; hardware tests pass their device explicitly.

Tests marked ``@pytest.mark.hardware`` are skipped unless ``--run-hardware``
is given::

    pytest tests/                            # CI, no GPU
    pytest tests/ -m hardware --run-hardware # on a GPU machine
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

from blascheck._backend import Backend


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register the ``--run-hardware`` CLI flag."""
    parser.addoption(
        "--run-hardware",
        action="store_true",
        default=False,
        help="Run tests that require a real CUDA or ROCm GPU",
    )


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Auto-skip hardware tests when --run-hardware is not set."""
    if config.getoption("--run-hardware"):
        return

    skip_hw = pytest.mark.skip(reason="needs --run-hardware flag and a GPU")
    for item in items:
        if "hardware" in item.keywords:
            item.add_marker(skip_hw)


def _clear_backend_caches() -> None:
    from blascheck import _backend

    _backend.detect_backends.cache_clear()
    _backend.preferred_backend.cache_clear()


@pytest.fixture(autouse=True)
def _reset_backend_state(monkeypatch: pytest.MonkeyPatch):
    """Ensure clean detection state and a CPU default device for every test."""
    monkeypatch.setenv("BLASCHECK_DEVICE", "cpu")
    _clear_backend_caches()
    yield
    _clear_backend_caches()


@pytest.fixture
def cpu_only_backend():
    """Simulate a CPU-only environment."""
    with patch("blascheck._backend.detect_backends",
               return_value=(Backend.CPU,)) as mock_detect:
        mock_detect.cache_clear = lambda: None
        with patch("blascheck._backend.preferred_backend",
                   return_value=Backend.CPU) as mock_pref:
            mock_pref.cache_clear = lambda: None
            yield


@pytest.fixture
def cuda_backend():
    """Simulate an NVIDIA CUDA environment."""
    with patch("blascheck._backend.detect_backends",
               return_value=(Backend.CUDA, Backend.CPU)) as mock_detect:
        mock_detect.cache_clear = lambda: None
        with patch("blascheck._backend.preferred_backend",
                   return_value=Backend.CUDA) as mock_pref:
            mock_pref.cache_clear = lambda: None
            yield


@pytest.fixture
def rocm_backend():
    """Simulate an AMD ROCm environment."""
    with patch("blascheck._backend.detect_backends",
               return_value=(Backend.ROCM, Backend.CPU)) as mock_detect:
        mock_detect.cache_clear = lambda: None
        with patch("blascheck._backend.preferred_backend",
                   return_value=Backend.ROCM) as mock_pref:
            mock_pref.cache_clear = lambda: None
            yield


@pytest.fixture
def handle():
    """A CPU handle, destroyed after the test."""
    from blascheck.blas import create_handle, destroy_handle

    h = create_handle("cpu")
    yield h
    destroy_handle(h)
