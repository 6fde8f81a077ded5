import sys
from collections.abc import Iterable
from typing import Literal

import numpy as np

from .errors import InvalidOptionError, MalformedContentError

ByteOrder = Literal["little_endian", "big_endian"]

BYTE_ORDERS: tuple[str, ...] = ("little_endian", "big_endian")

# Written once on first use, every writer computes the same value
_host_order: ByteOrder | None = None


def compute_byte_ranges(lengths: Iterable[int]) -> list[int]:
    """Turn per-chunk compressed sizes into absolute offsets.

    Args:
        lengths (Iterable[int]): size in bytes of each chunk, in file order

    Returns:
        list[int]: `len(lengths) + 1` offsets starting at 0, where chunk `i` occupies `[out[i], out[i + 1])`
    """
    last = 0
    output = [0]
    for i, length in enumerate(lengths):
        if length < 0:
            raise ValueError(f"Chunk {i} has a negative byte length ({length})")
        last += length
        output.append(last)
    return output


def current_byte_order() -> ByteOrder:
    """Byte order of this machine, as named in a summary's `byte_order` field.

    Returns:
        ByteOrder: either `little_endian` or `big_endian`
    """
    global _host_order
    if _host_order is None:
        _host_order = "little_endian" if sys.byteorder == "little" else "big_endian"
    return _host_order


def reset_byte_order() -> None:
    """Forget the cached host byte order so that the next call detects it again."""
    global _host_order
    _host_order = None


def convert_byte_order(x: bytearray, order: str, size: int) -> None:
    """Bring `x` into the host byte order, in place.

    If `order` already matches the host nothing happens, otherwise the bytes
    of every consecutive group of `size` bytes are reversed.

    Args:
        x (bytearray): decompressed buffer of fixed-width values
        order (str): byte order the values were written in
        size (int): width of each value in bytes, 4 for integers and 8 for doubles
    """
    if order not in BYTE_ORDERS:
        raise InvalidOptionError(
            f"unsupported byte order '{order}', expected one of {BYTE_ORDERS}"
        )
    if len(x) % size != 0:
        raise MalformedContentError(
            f"buffer of {len(x)} bytes does not hold a whole number of {size}-byte values"
        )
    if order == current_byte_order() or len(x) == 0:
        return

    groups = np.frombuffer(x, dtype=np.uint8).reshape(-1, size)
    groups[:] = groups[:, ::-1].copy()
