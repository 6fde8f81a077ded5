class WobbegongError(Exception):
    """Base class for every error raised while reading a wobbegong dataset."""


class DecompressionError(WobbegongError, ValueError):
    """The byte range is not a complete raw DEFLATE stream."""


class UnknownTypeError(WobbegongError, ValueError):
    """The type tag is not one of `integer`, `double`, `boolean` or `string`."""


class InvalidOptionError(WobbegongError, TypeError):
    """An option keyword is not recognized, or its value is not supported."""


class RowIndexOutOfRangeError(WobbegongError, IndexError):
    """A matrix row was requested outside of `[0, row_count)`."""


class MalformedContentError(WobbegongError, ValueError):
    """Decoded content does not agree with what its summary describes."""


class MalformedIndexError(MalformedContentError):
    """Sparse column indices are not strictly increasing, are out of bounds, or do not pair up with the values."""


class UnknownObjectError(WobbegongError, ValueError):
    """A `summary.json` describes an object kind that cannot be loaded."""
