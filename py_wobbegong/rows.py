"""
Row addressing and decoding for wobbegong matrices.

A dense matrix stores each row as one chunk of `column_count` values. A
sparse matrix stores each row as two adjacent chunks, the structural
non-zero values followed by their delta-encoded column indices, so one fetch
of `[start, end)` retrieves both and `split` marks where the indices begin.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, NamedTuple

import numpy as np

from .byte_utils import compute_byte_ranges
from .decode import (
    Decoded,
    check_missing,
    check_options,
    decode,
    decode_delta_indices,
)
from .errors import (
    MalformedContentError,
    MalformedIndexError,
    RowIndexOutOfRangeError,
)

ZERO_VALUES: dict[str, Any] = {
    "integer": 0,
    "double": 0.0,
    "boolean": False,
    "string": "",
}


class SparseRow(NamedTuple):
    value: Decoded
    """Values of the structural non-zero entries."""
    index: np.ndarray
    """Sorted, unique column positions of each entry of `value`."""


@dataclass(frozen=True)
class RowLayout:
    """Where every row of a matrix lives inside its content file."""

    row_count: int
    column_count: int
    type: str
    sparse: bool
    byte_order: str
    offsets: tuple[int, ...]
    """For dense matrices one offset per row boundary, for sparse matrices two per row: the value/index split and the row end."""

    @classmethod
    def from_summary(cls, summary: Mapping[str, Any]) -> "RowLayout":
        row_count: int = summary["row_count"]
        sparse: bool = summary["format"] == "sparse"
        row_bytes = summary["row_bytes"]

        if sparse:
            value_bytes: Sequence[int] = row_bytes["value"]
            index_bytes: Sequence[int] = row_bytes["index"]
            if len(value_bytes) != row_count or len(index_bytes) != row_count:
                raise MalformedContentError(
                    f"expected {row_count} value and index byte lengths, got {len(value_bytes)} and {len(index_bytes)}"
                )
            interleaved: list[int] = []
            for v, i in zip(value_bytes, index_bytes):
                interleaved.append(v)
                interleaved.append(i)
            offsets = compute_byte_ranges(interleaved)
        else:
            if len(row_bytes) != row_count:
                raise MalformedContentError(
                    f"expected {row_count} row byte lengths, got {len(row_bytes)}"
                )
            offsets = compute_byte_ranges(row_bytes)

        return cls(
            row_count=row_count,
            column_count=summary["column_count"],
            type=summary["type"],
            sparse=sparse,
            byte_order=summary["byte_order"],
            offsets=tuple(offsets),
        )


def row_range(layout: RowLayout, i: int) -> tuple[int, int] | tuple[int, int, int]:
    """Byte range of row `i`.

    Returns:
        `(start, end)` for a dense matrix, `(start, split, end)` for a sparse one, where `[start, split)` holds the values and `[split, end)` the indices
    """
    if (
        isinstance(i, bool)
        or not isinstance(i, (int, np.integer))
        or not 0 <= i < layout.row_count
    ):
        raise RowIndexOutOfRangeError(
            f"row index {i!r} is out of range for a matrix with {layout.row_count} rows"
        )
    i = int(i)
    if not layout.sparse:
        return layout.offsets[i], layout.offsets[i + 1]
    i2 = 2 * i
    return layout.offsets[i2], layout.offsets[i2 + 1], layout.offsets[i2 + 2]


def check_indices(values: Decoded, indices: np.ndarray, column_count: int) -> None:
    """Ensure a decoded sparse row is internally consistent."""
    if len(values) != len(indices):
        raise MalformedIndexError(
            f"sparse row has {len(values)} values but {len(indices)} indices"
        )
    if len(indices) == 0:
        return
    if indices[0] < 0 or indices[-1] >= column_count:
        raise MalformedIndexError(
            f"sparse row indices must lie in [0, {column_count})"
        )
    if np.any(np.diff(indices) <= 0):
        raise MalformedIndexError("sparse row indices are not strictly increasing")


def densify_row(
    values: Decoded, indices: np.ndarray, column_count: int, type: str
) -> Decoded:
    """Expand a sparse row into `column_count` values with explicit zeros."""
    if isinstance(values, np.ndarray):
        full = np.zeros(column_count, dtype=values.dtype)
        full[indices] = values
        return full

    dense: list[Any] = [ZERO_VALUES.get(type, 0)] * column_count
    for v, i in zip(values, indices.tolist()):
        dense[i] = v
    return dense


def decode_row(
    payload: bytes, layout: RowLayout, i: int, **options: Any
) -> Decoded | SparseRow:
    """
    Decode row `i` from `payload`, the bytes of `row_range(layout, i)`.

    ### Options
    - `missing`: handling of missing integers, see `decode_integers`.
    - `as_dense`: for sparse matrices, return the row as a full-length array
      with explicit zeros instead of a `SparseRow`. Ignored for dense matrices.
    """
    check_options(options, ("missing", "as_dense"))
    missing: str = options.get("missing", "null")
    check_missing(missing)
    as_dense: bool = options.get("as_dense", False)

    bounds = row_range(layout, i)
    if len(payload) != bounds[-1] - bounds[0]:
        raise MalformedContentError(
            f"row {i} should span {bounds[-1] - bounds[0]} bytes, got {len(payload)}"
        )

    if not layout.sparse:
        row = decode(payload, layout.type, layout.byte_order, missing=missing)
        if len(row) != layout.column_count:
            raise MalformedContentError(
                f"row {i} has {len(row)} values, expected {layout.column_count}"
            )
        return row

    start, split, _ = bounds
    midpoint = split - start
    values = decode(payload[:midpoint], layout.type, layout.byte_order, missing=missing)
    indices = decode_delta_indices(payload[midpoint:], layout.byte_order)
    check_indices(values, indices, layout.column_count)

    if not as_dense:
        return SparseRow(value=values, index=indices)
    return densify_row(values, indices, layout.column_count, layout.type)
