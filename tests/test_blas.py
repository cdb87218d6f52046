"""Tests for the SPR2 binding: status codes, numerics and calling conventions."""

from __future__ import annotations

import pytest
import torch

from blascheck.blas import (
    Fill,
    PointerMode,
    Status,
    char2fill,
    create_handle,
    destroy_handle,
    local_handle,
    spr2,
    status_to_string,
)
from blascheck.reference import packed_size, unpack


def _buffers(n: int, incx: int = 1, incy: int = 1, dtype=torch.float64):
    gen = torch.Generator().manual_seed(1234)
    x = torch.randint(1, 11, (max(n, 1) * abs(incx),), generator=gen).to(dtype)
    y = torch.randint(1, 11, (max(n, 1) * abs(incy),), generator=gen).to(dtype)
    ap = torch.randint(1, 11, (packed_size(n),), generator=gen).to(dtype)
    return x, y, ap


def _logical(v: torch.Tensor, n: int, inc: int) -> torch.Tensor:
    idx = [i * inc if inc > 0 else (n - 1 - i) * -inc for i in range(n)]
    return v[idx]


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class TestTypes:

    def test_status_values(self) -> None:
        assert Status.SUCCESS == 0
        assert Status.INVALID_HANDLE == 1
        assert Status.INVALID_POINTER == 3
        assert Status.INVALID_SIZE == 4
        assert Status.INVALID_VALUE == 11

    def test_status_to_string(self) -> None:
        assert status_to_string(Status.INVALID_SIZE) == "blascheck_status_invalid_size"
        assert status_to_string(0) == "blascheck_status_success"
        assert status_to_string(99) == "blascheck_status_unknown(99)"
        assert str(Status.INVALID_POINTER) == "blascheck_status_invalid_pointer"

    @pytest.mark.parametrize("char,fill", [("U", Fill.UPPER), ("l", Fill.LOWER), ("F", Fill.FULL)])
    def test_char2fill(self, char: str, fill: Fill) -> None:
        assert char2fill(char) is fill

    def test_char2fill_rejects_unknown(self) -> None:
        with pytest.raises(ValueError, match="invalid fill"):
            char2fill("X")


# ---------------------------------------------------------------------------
# Handles
# ---------------------------------------------------------------------------


class TestHandle:

    def test_cpu_handle_has_no_stream(self) -> None:
        with local_handle("cpu") as h:
            assert h.device.type == "cpu"
            assert h.get_stream() is None
            h.synchronize()

    def test_local_handle_destroyed_on_error(self) -> None:
        with pytest.raises(RuntimeError):
            with local_handle("cpu") as h:
                raise RuntimeError("boom")
        assert not h.is_valid

    def test_destroyed_handle_rejected(self) -> None:
        h = create_handle("cpu")
        destroy_handle(h)
        x, y, ap = _buffers(4)
        assert spr2(h, "U", 4, 1.0, x, 1, y, 1, ap) == Status.INVALID_HANDLE
        assert "destroyed" in repr(h)

    def test_packed_indices_cached_per_handle(self) -> None:
        x, y, ap = _buffers(4)
        with local_handle("cpu") as h:
            assert h.workspace == {}
            assert spr2(h, "U", 4, 1.0, x, 1, y, 1, ap) == Status.SUCCESS
            assert len(h.workspace) == 1
            cached = next(iter(h.workspace.values()))
            assert spr2(h, "U", 4, 1.0, x, 1, y, 1, ap) == Status.SUCCESS
            assert next(iter(h.workspace.values()))[0] is cached[0]
            assert spr2(h, "L", 4, 1.0, x, 1, y, 1, ap) == Status.SUCCESS
            assert len(h.workspace) == 2
        assert h.workspace == {}

    def test_destroy_releases_workspace(self) -> None:
        h = create_handle("cpu")
        x, y, ap = _buffers(3)
        spr2(h, Fill.LOWER, 3, 1.0, x, 1, y, 1, ap)
        assert h.workspace
        destroy_handle(h)
        assert h.workspace == {}


# ---------------------------------------------------------------------------
# Argument validation
# ---------------------------------------------------------------------------


class TestStatuses:

    def test_null_handle(self) -> None:
        x, y, ap = _buffers(4)
        before = ap.clone()
        assert spr2(None, Fill.UPPER, 4, 1.0, x, 1, y, 1, ap) == Status.INVALID_HANDLE
        assert torch.equal(ap, before)

    def test_full_fill_leaves_matrix_untouched(self, handle) -> None:
        x, y, ap = _buffers(10)
        before = ap.clone()
        assert spr2(handle, Fill.FULL, 10, 0.6, x, 1, y, 1, ap) == Status.INVALID_VALUE
        assert torch.equal(ap, before)

    def test_unknown_fill_character(self, handle) -> None:
        x, y, ap = _buffers(4)
        assert spr2(handle, "Q", 4, 1.0, x, 1, y, 1, ap) == Status.INVALID_VALUE

    @pytest.mark.parametrize("n,incx,incy", [(-1, 1, 1), (10, 0, 1), (10, 1, 0)])
    def test_invalid_size_needs_no_buffers(self, handle, n: int, incx: int, incy: int) -> None:
        assert spr2(handle, Fill.UPPER, n, None, None, incx, None, incy, None) == Status.INVALID_SIZE

    def test_handle_checked_before_size(self) -> None:
        assert spr2(None, Fill.UPPER, -1, None, None, 1, None, 1, None) == Status.INVALID_HANDLE

    def test_fill_checked_before_size(self, handle) -> None:
        assert spr2(handle, Fill.FULL, -1, None, None, 1, None, 1, None) == Status.INVALID_VALUE

    def test_zero_order_is_a_no_op(self, handle) -> None:
        assert spr2(handle, Fill.LOWER, 0, None, None, 1, None, 1, None) == Status.SUCCESS

    def test_null_alpha(self, handle) -> None:
        x, y, ap = _buffers(4)
        assert spr2(handle, Fill.UPPER, 4, None, x, 1, y, 1, ap) == Status.INVALID_POINTER

    def test_zero_alpha_host_mode_skips_pointer_checks(self, handle) -> None:
        assert spr2(handle, Fill.UPPER, 4, 0.0, None, 1, None, 1, None) == Status.SUCCESS

    def test_zero_alpha_device_mode_still_checks_pointers(self, handle) -> None:
        alpha = torch.zeros(1, dtype=torch.float64)
        status = spr2(handle, Fill.UPPER, 4, alpha, None, 1, None, 1, None,
                      pointer_mode=PointerMode.DEVICE)
        assert status == Status.INVALID_POINTER

    @pytest.mark.parametrize("missing", ["x", "y", "ap"])
    def test_null_operand(self, handle, missing: str) -> None:
        x, y, ap = _buffers(4)
        args = {"x": x, "y": y, "ap": ap}
        before = {k: v.clone() for k, v in args.items()}
        args[missing] = None
        status = spr2(handle, Fill.UPPER, 4, 1.0, args["x"], 1, args["y"], 1, args["ap"])
        assert status == Status.INVALID_POINTER
        for name, original in before.items():
            if name != missing:
                assert torch.equal(args[name], original)

    @pytest.mark.parametrize("alpha", ["abc", object(), [1.0, 2.0]])
    def test_non_numeric_host_alpha(self, handle, alpha) -> None:
        x, y, ap = _buffers(4)
        before = ap.clone()
        assert spr2(handle, Fill.UPPER, 4, alpha, x, 1, y, 1, ap) == Status.INVALID_POINTER
        assert torch.equal(ap, before)

    def test_device_mode_rejects_python_scalar(self, handle) -> None:
        x, y, ap = _buffers(4)
        status = spr2(handle, Fill.UPPER, 4, 1.0, x, 1, y, 1, ap, pointer_mode=PointerMode.DEVICE)
        assert status == Status.INVALID_POINTER

    def test_non_vector_operand(self, handle) -> None:
        x, y, ap = _buffers(4)
        status = spr2(handle, Fill.UPPER, 4, 1.0, x.reshape(2, 2), 1, y, 1, ap)
        assert status == Status.INVALID_POINTER

    def test_mixed_precision_rejected(self, handle) -> None:
        x, y, ap = _buffers(4)
        status = spr2(handle, Fill.UPPER, 4, 1.0, x.float(), 1, y, 1, ap)
        assert status == Status.INVALID_VALUE

    def test_integer_dtype_rejected(self, handle) -> None:
        x, y, ap = _buffers(4)
        status = spr2(handle, Fill.UPPER, 4, 1.0, x.long(), 1, y.long(), 1, ap.long())
        assert status == Status.INVALID_VALUE

    def test_short_buffer(self, handle) -> None:
        x, y, ap = _buffers(4)
        assert spr2(handle, Fill.UPPER, 4, 1.0, x[:3], 1, y, 1, ap) == Status.INVALID_SIZE
        assert spr2(handle, Fill.UPPER, 4, 1.0, x, 1, y, 1, ap[:9]) == Status.INVALID_SIZE


# ---------------------------------------------------------------------------
# Numerics
# ---------------------------------------------------------------------------


class TestNumerics:

    @pytest.mark.parametrize("fill", [Fill.UPPER, Fill.LOWER])
    @pytest.mark.parametrize("incx,incy", [(1, 1), (-2, 1), (2, -1), (3, 2)])
    def test_matches_dense_update(self, handle, fill: Fill, incx: int, incy: int) -> None:
        n, alpha = 7, 0.6
        x, y, ap = _buffers(n, incx, incy)
        dense_before = unpack(fill, n, ap)

        assert spr2(handle, fill, n, alpha, x, incx, y, incy, ap) == Status.SUCCESS

        xl = _logical(x, n, incx)
        yl = _logical(y, n, incy)
        expected = dense_before + alpha * (torch.outer(xl, yl) + torch.outer(yl, xl))
        torch.testing.assert_close(unpack(fill, n, ap), expected)

    def test_upper_packed_order(self, handle) -> None:
        # n=2, x=(1,2), y=(3,4), alpha=1: A gains [[6,10],[10,16]]
        x = torch.tensor([1.0, 2.0], dtype=torch.float64)
        y = torch.tensor([3.0, 4.0], dtype=torch.float64)
        ap = torch.zeros(3, dtype=torch.float64)
        assert spr2(handle, "U", 2, 1.0, x, 1, y, 1, ap) == Status.SUCCESS
        assert ap.tolist() == [6.0, 10.0, 16.0]

    def test_lower_packed_order(self, handle) -> None:
        x = torch.tensor([1.0, 2.0, 0.0], dtype=torch.float64)
        y = torch.tensor([3.0, 4.0, 1.0], dtype=torch.float64)
        ap = torch.zeros(6, dtype=torch.float64)
        assert spr2(handle, "L", 3, 1.0, x, 1, y, 1, ap) == Status.SUCCESS
        # columns: (0,0) (1,0) (2,0) | (1,1) (2,1) | (2,2)
        assert ap.tolist() == [6.0, 10.0, 1.0, 16.0, 2.0, 0.0]

    def test_negative_increment_reads_backwards(self, handle) -> None:
        # incx=-1 over (2, 1) is the logical vector (1, 2)
        x = torch.tensor([2.0, 1.0], dtype=torch.float64)
        y = torch.tensor([3.0, 4.0], dtype=torch.float64)
        ap = torch.zeros(3, dtype=torch.float64)
        assert spr2(handle, "U", 2, 1.0, x, -1, y, 1, ap) == Status.SUCCESS
        assert ap.tolist() == [6.0, 10.0, 16.0]

    def test_elements_past_packed_size_untouched(self, handle) -> None:
        x, y, _ = _buffers(5)
        ap = torch.zeros(packed_size(5) + 4, dtype=torch.float64)
        assert spr2(handle, "U", 5, 1.0, x, 1, y, 1, ap) == Status.SUCCESS
        assert torch.equal(ap[packed_size(5):], torch.zeros(4, dtype=torch.float64))

    def test_pointer_modes_agree(self, handle) -> None:
        x, y, ap1 = _buffers(20, dtype=torch.float32)
        ap2 = ap1.clone()
        alpha = torch.tensor([0.6], dtype=torch.float32)
        assert spr2(handle, "L", 20, 0.6, x, 1, y, 1, ap1) == Status.SUCCESS
        assert spr2(handle, "L", 20, alpha, x, 1, y, 1, ap2,
                    pointer_mode=PointerMode.DEVICE) == Status.SUCCESS
        torch.testing.assert_close(ap1, ap2, rtol=0, atol=0)

    def test_default_case_mutates_only_the_matrix(self, handle) -> None:
        x, y, ap = _buffers(100, dtype=torch.float32)
        x0, y0, ap0 = x.clone(), y.clone(), ap.clone()
        assert spr2(handle, Fill.UPPER, 100, 0.6, x, 1, y, 1, ap) == Status.SUCCESS
        assert torch.equal(x, x0) and torch.equal(y, y0)
        assert not torch.equal(ap, ap0)

    def test_zero_alpha_leaves_matrix_untouched(self, handle) -> None:
        x, y, ap = _buffers(6)
        before = ap.clone()
        assert spr2(handle, "U", 6, 0.0, x, 1, y, 1, ap) == Status.SUCCESS
        assert torch.equal(ap, before)
