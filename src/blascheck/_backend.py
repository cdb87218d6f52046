"""Backend detection and device resolution.

This module is the single source of truth for "which device does the
accelerated BLAS run on?"  Everything else asks here instead of probing
torch on its own.

``torch`` is imported lazily so that ``blascheck status`` and the argument
model work without PyTorch installed.

Backends, in order of preference:

1. **AMD ROCm**: a PyTorch ROCm build; presents as the ``"cuda"`` device
   type, recognised by ``torch.version.hip``.
2. **NVIDIA CUDA**: ``torch.cuda``.
3. **CPU**: always available.  The SPR2 kernel then runs on the host, which
   keeps the harness exercisable in CI without a GPU.

The ``BLASCHECK_DEVICE`` environment variable overrides the choice, e.g.
``BLASCHECK_DEVICE=cpu`` or ``BLASCHECK_DEVICE=cuda:1``.
"""

from __future__ import annotations

import enum
import functools
import os
from typing import Any, Optional

from blascheck._logging import get_logger

logger = get_logger(__name__)

_ENV_DEVICE = "BLASCHECK_DEVICE"


# ---------------------------------------------------------------------------
# Backend enumeration
# ---------------------------------------------------------------------------


class Backend(enum.Enum):
    """Available compute backends, ordered by preference."""

    ROCM = "rocm"    # AMD via ROCm/HIP (presents as "cuda" device)
    CUDA = "cuda"    # NVIDIA via torch.cuda
    CPU = "cpu"      # Always available


# torch device type used by each backend
_DEVICE_TYPES = {
    Backend.ROCM: "cuda",
    Backend.CUDA: "cuda",
    Backend.CPU: "cpu",
}


# ---------------------------------------------------------------------------
# Lazy module references (populated on first access)
# ---------------------------------------------------------------------------

_torch: Optional[Any] = None


def _import_torch() -> Any:
    """Lazily import torch, caching the result."""
    global _torch  # noqa: PLW0603
    if _torch is None:
        try:
            import torch  # type: ignore[import-untyped]
            _torch = torch
        except ImportError:
            raise ImportError(
                "PyTorch is required but not installed. "
                "Install it with: pip install torch>=2.0"
            ) from None
    return _torch


def get_torch() -> Any:
    """Return the ``torch`` module (importing it if necessary)."""
    return _import_torch()


# ---------------------------------------------------------------------------
# Detection logic
# ---------------------------------------------------------------------------


def _rocm_available(torch: Any) -> bool:
    # ROCm builds set torch.version.hip; CUDA builds leave it None
    hip_version = getattr(torch.version, "hip", None)
    return hip_version is not None and torch.cuda.is_available()


@functools.lru_cache(maxsize=1)
def detect_backends() -> tuple[Backend, ...]:
    """Probe the system and return all available backends, best-first.

    The result is cached for the lifetime of the process.
    """
    available: list[Backend] = []
    torch = _import_torch()

    try:
        if _rocm_available(torch):
            available.append(Backend.ROCM)
            logger.info(
                "AMD ROCm detected (HIP %s, %d device(s))",
                torch.version.hip, torch.cuda.device_count(),
            )
        elif torch.cuda.is_available():
            available.append(Backend.CUDA)
            logger.info(
                "NVIDIA CUDA detected (%d device(s))",
                torch.cuda.device_count(),
            )
    except Exception as exc:  # noqa: BLE001
        logger.warning("GPU detection failed: %s", exc)

    available.append(Backend.CPU)
    logger.debug("Detected backends (preference order): %s", available)
    return tuple(available)


@functools.lru_cache(maxsize=1)
def preferred_backend() -> Backend:
    """Return the single best backend for this system."""
    return detect_backends()[0]


def has_rocm() -> bool:
    """Return True if an AMD ROCm GPU is usable."""
    return Backend.ROCM in detect_backends()


def has_cuda() -> bool:
    """Return True if an NVIDIA GPU is usable."""
    return Backend.CUDA in detect_backends()


def has_gpu() -> bool:
    """Return True if any GPU backend is usable."""
    return preferred_backend() is not Backend.CPU


# ---------------------------------------------------------------------------
# Device-string resolution
# ---------------------------------------------------------------------------


def resolve_device(device: Optional[str] = None) -> str:
    """Resolve a requested device string to one this system can run on.

    Resolution rules:
    - ``None`` → ``$BLASCHECK_DEVICE`` if set, else the preferred backend's
      device type (``"cuda"`` or ``"cpu"``).
    - ``"cuda"``/``"cuda:N"``/``"hip"`` on a CPU-only system → ``"cpu"``,
      with a warning.
    - ``"hip"``/``"rocm"`` → ``"cuda"`` (HIP devices are ``cuda`` in torch).
    - Anything else is returned unchanged.

    Examples::

        # On a CUDA or ROCm system:
        resolve_device()          # → "cuda"
        resolve_device("cuda:1")  # → "cuda:1"

        # On CPU:
        resolve_device("cuda")    # → "cpu"
    """
    if device is None:
        device = os.environ.get(_ENV_DEVICE, "").strip() or None
    if device is None:
        return _DEVICE_TYPES[preferred_backend()]

    if device.startswith(("hip", "rocm")):
        device = "cuda" + device[len(device.split(":")[0]):]
        logger.debug("Device string translated to %r", device)

    if device.startswith("cuda") and not has_gpu():
        logger.warning(
            "No GPU available, running device %r on 'cpu'. "
            "Timings will not be representative.",
            device,
        )
        return "cpu"

    return device
