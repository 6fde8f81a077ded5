import zlib

from .errors import DecompressionError

# Negative window bits select a raw DEFLATE stream, with no zlib or gzip framing
RAW_DEFLATE_WBITS: int = -zlib.MAX_WBITS

_CHUNK_SIZE: int = 64 * 1024


def decompress(data: bytes | bytearray | memoryview) -> bytearray:
    """Inflate one raw DEFLATE chunk into a new, fully materialized buffer.

    The whole input is consumed before anything is returned. The returned
    `bytearray` is owned by the caller, so the typed decoders are free to
    reorder its bytes in place.
    """
    inflater = zlib.decompressobj(RAW_DEFLATE_WBITS)
    output = bytearray()
    view = memoryview(data)
    try:
        for offset in range(0, len(view), _CHUNK_SIZE):
            output += inflater.decompress(view[offset : offset + _CHUNK_SIZE])
        output += inflater.flush()
    except zlib.error as exc:
        raise DecompressionError(f"invalid raw DEFLATE stream: {exc}") from exc

    if not inflater.eof:
        raise DecompressionError(
            f"raw DEFLATE stream is truncated after {len(data)} compressed bytes"
        )
    if inflater.unused_data:
        raise DecompressionError(
            f"{len(inflater.unused_data)} bytes follow the end of the raw DEFLATE stream"
        )
    return output
