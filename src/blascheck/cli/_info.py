"""System info. Used by blascheck info."""

from __future__ import annotations


def show_info() -> str:
    """Show detected backends and device properties."""
    lines = ["blascheck system info", "=" * 50]

    try:
        import torch
        lines.append(f"PyTorch version:     {torch.__version__}")
    except ImportError:
        lines.append("PyTorch:             NOT INSTALLED")
        return "\n".join(lines)

    import blascheck
    from blascheck import _backend
    from blascheck.device import query_device_property

    lines.append(f"blascheck version:   {blascheck.__version__}")
    lines.append(f"Preferred backend:   {_backend.preferred_backend().value}")
    lines.append(f"Has AMD ROCm:        {_backend.has_rocm()}")
    lines.append(f"Has NVIDIA CUDA:     {_backend.has_cuda()}")
    lines.append(f"All backends:        {[b.value for b in _backend.detect_backends()]}")
    lines.append(f"Default device:      {_backend.resolve_device()}")

    lines.append("")
    lines.append("Devices:")
    props = query_device_property()
    if not props:
        lines.append("  (none, running on CPU)")
    for p in props:
        lines.append(
            f"  [{p['id']}] {p['name']:<30} {p['total_memory_mb']:>8} MiB  "
            f"CUs={p['multi_processor_count']}  arch={p['capability']}"
        )

    return "\n".join(lines)
