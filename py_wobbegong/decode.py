"""
Typed decoders for the compressed chunks of a wobbegong dataset.

Every decoder takes the raw DEFLATE bytes of exactly one chunk, as fetched
from a content file, and returns a freshly allocated result:

| type      | result                                                         |
| --------- | -------------------------------------------------------------- |
| `integer` | `numpy.int32` array, or see the `missing` option below         |
| `double`  | `numpy.float64` array, NaN and infinities pass through as-is   |
| `boolean` | `list` of `True`, `False` or `None`                            |
| `string`  | `list` of `str` or `None`                                      |

Options are passed as keywords and validated strictly; a misspelled option
raises `InvalidOptionError` before anything is decompressed.
"""

from collections.abc import Callable, Iterable, Mapping
from typing import Any, Literal

import numpy as np

from .byte_utils import convert_byte_order
from .decompress import decompress
from .errors import InvalidOptionError, MalformedContentError, UnknownTypeError

MISSING_INTEGER: int = -2147483648
"""The lowest 32-bit integer, used in-band to mark a missing integer."""

MISSING_STRING: str = "�"
"""A string field holding only the Unicode replacement character is missing."""

MissingPolicy = Literal["raw", "null", "nan"]
MISSING_POLICIES: tuple[str, ...] = ("raw", "null", "nan")

TYPES: tuple[str, ...] = ("integer", "double", "boolean", "string")

Decoded = np.ndarray | list[Any]


def check_options(options: Mapping[str, Any], allowed: Iterable[str]) -> None:
    """Raise `InvalidOptionError` for the first key of `options` not in `allowed`."""
    allowed = set(allowed)
    for key in options:
        if key not in allowed:
            raise InvalidOptionError(f"unknown option '{key}'")


def check_missing(missing: str) -> None:
    if missing not in MISSING_POLICIES:
        raise InvalidOptionError(
            f"unsupported value for the 'missing' option ({missing!r}), expected one of {MISSING_POLICIES}"
        )


def decode_integers(data: bytes, order: str, **options: Any) -> Decoded:
    """
    Decode 32-bit signed integers.

    ### `missing`
    How to treat the missing value sentinel, `MISSING_INTEGER`.
    - `"null"` (default): if any sentinel is present, return a `list` where
      those positions are `None` and every other position is a python `int`.
    - `"nan"`: if any sentinel is present, return a `float64` array with NaN
      at those positions.
    - `"raw"`: leave the sentinel in place.

    Without any sentinel in the chunk, the `int32` array is returned for every
    policy.
    """
    check_options(options, ("missing",))
    missing: str = options.get("missing", "null")
    check_missing(missing)

    out = decompress(data)
    convert_byte_order(out, order, 4)
    res = np.frombuffer(out, dtype=np.int32)
    if missing == "raw":
        return res

    is_missing = res == MISSING_INTEGER
    if not is_missing.any():
        return res

    if missing == "null":
        full: list[int | None] = res.tolist()
        for i in np.flatnonzero(is_missing):
            full[i] = None
        return full

    casted = res.astype(np.float64)
    casted[is_missing] = np.nan
    return casted


def decode_delta_indices(data: bytes, order: str, **options: Any) -> np.ndarray:
    """Decode delta-encoded column indices into their absolute positions."""
    check_options(options, ())
    # Index streams never contain the missing sentinel
    dec = decode_integers(data, order, missing="raw")
    np.cumsum(dec, dtype=np.int32, out=dec)
    return dec


def decode_doubles(data: bytes, order: str, **options: Any) -> np.ndarray:
    check_options(options, ())
    out = decompress(data)
    convert_byte_order(out, order, 8)
    return np.frombuffer(out, dtype=np.float64)


def decode_booleans(data: bytes, **options: Any) -> list[bool | None]:
    """Decode one byte per value: 0 is False, 1 is True and anything else is missing."""
    check_options(options, ())
    out = decompress(data)
    lookup: dict[int, bool] = {0: False, 1: True}
    return [lookup.get(v) for v in out]


def decode_strings(data: bytes, **options: Any) -> list[str | None]:
    """
    Decode NUL-terminated UTF-8 strings.

    Every field, including the last one, must end with a NUL byte. A field
    that is exactly the replacement character U+FFFD is a missing value and
    becomes `None`.
    """
    check_options(options, ())
    out = decompress(data)
    if len(out) == 0:
        return []
    if out[-1] != 0:
        raise MalformedContentError("the last string field is not NUL-terminated")

    result: list[str | None] = []
    for field in bytes(out[:-1]).split(b"\x00"):
        current = field.decode("utf-8", errors="replace")
        result.append(None if current == MISSING_STRING else current)
    return result


_DECODERS: dict[str, Callable[[bytes, str, str], Decoded]] = {
    "integer": lambda data, order, missing: decode_integers(
        data, order, missing=missing
    ),
    "double": lambda data, order, missing: decode_doubles(data, order),
    "boolean": lambda data, order, missing: decode_booleans(data),
    "string": lambda data, order, missing: decode_strings(data),
}


def decode(data: bytes, type: str, order: str, **options: Any) -> Decoded:
    """
    Decode one chunk according to its declared `type`.

    Only `missing` is accepted as an option, and it only affects integers;
    see `decode_integers`.
    """
    check_options(options, ("missing",))
    missing: str = options.get("missing", "null")
    check_missing(missing)

    try:
        decoder = _DECODERS[type]
    except KeyError:
        raise UnknownTypeError(f"unknown column type '{type}'") from None
    return decoder(data, order, missing)
