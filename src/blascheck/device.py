"""Device queries for the GPU backend (CUDA or ROCm).

Usage::

    import blascheck.device as device

    for props in device.query_device_property():
        print(props["id"], props["name"])
    device.set_device(0)
"""

from __future__ import annotations

from typing import Any, Dict, List

from blascheck._backend import get_torch, has_gpu
from blascheck._logging import get_logger

logger = get_logger(__name__)


def is_available() -> bool:
    """Return True if a GPU backend is available."""
    return has_gpu()


def device_count() -> int:
    """Return the number of GPU devices (0 on a CPU-only system)."""
    if not has_gpu():
        return 0
    return get_torch().cuda.device_count()


def set_device(device_id: int) -> None:
    """Make ``device_id`` the current GPU device."""
    count = device_count()
    if device_id < 0 or device_id >= count:
        raise ValueError(
            f"device id {device_id} out of range ({count} device(s) available)"
        )
    get_torch().cuda.set_device(device_id)
    logger.debug("Current device set to %d", device_id)


def get_device_name(device_id: int = 0) -> str:
    """Return the name of the device at the given index."""
    if not has_gpu():
        return "cpu"
    return get_torch().cuda.get_device_name(device_id)


def query_device_property() -> List[Dict[str, Any]]:
    """Describe every visible GPU, one dict per device.

    Keys: ``id``, ``name``, ``total_memory_mb``, ``multi_processor_count``,
    ``capability`` (``"major.minor"``; the gfx architecture on ROCm builds
    that expose ``gcnArchName``).  An empty list on CPU-only systems.
    """
    torch = get_torch()
    devices: List[Dict[str, Any]] = []
    for idx in range(device_count()):
        props = torch.cuda.get_device_properties(idx)
        capability = getattr(props, "gcnArchName", None) or f"{props.major}.{props.minor}"
        info = {
            "id": idx,
            "name": props.name,
            "total_memory_mb": props.total_memory // (1024 * 1024),
            "multi_processor_count": props.multi_processor_count,
            "capability": capability,
        }
        logger.info(
            "Device ID %d : %s (%s) with %d MB memory, %d compute units",
            idx, info["name"], capability, info["total_memory_mb"],
            info["multi_processor_count"],
        )
        devices.append(info)
    if not devices:
        logger.info("No GPU devices found")
    return devices
