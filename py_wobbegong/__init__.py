import logging

from .byte_utils import compute_byte_ranges, convert_byte_order, current_byte_order
from .dataframe import DataFrame
from .decode import (
    MISSING_INTEGER,
    decode,
    decode_booleans,
    decode_delta_indices,
    decode_doubles,
    decode_integers,
    decode_strings,
)
from .decompress import decompress
from .errors import (
    DecompressionError,
    InvalidOptionError,
    MalformedContentError,
    MalformedIndexError,
    RowIndexOutOfRangeError,
    UnknownObjectError,
    UnknownTypeError,
    WobbegongError,
)
from .fetch import HttpxFetcher, local_fetch_json, local_fetch_range
from .load import load
from .matrix import Matrix
from .reduced_dimension import ReducedDimensionResult
from .rows import SparseRow
from .summarized_experiment import SummarizedExperiment

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "load",
    "DataFrame",
    "Matrix",
    "ReducedDimensionResult",
    "SummarizedExperiment",
    "SparseRow",
    "HttpxFetcher",
    "local_fetch_json",
    "local_fetch_range",
    "decode",
    "decode_integers",
    "decode_doubles",
    "decode_booleans",
    "decode_strings",
    "decode_delta_indices",
    "decompress",
    "compute_byte_ranges",
    "convert_byte_order",
    "current_byte_order",
    "MISSING_INTEGER",
    "WobbegongError",
    "DecompressionError",
    "UnknownTypeError",
    "InvalidOptionError",
    "RowIndexOutOfRangeError",
    "MalformedContentError",
    "MalformedIndexError",
    "UnknownObjectError",
]
