import logging
from typing import Any

from .byte_utils import compute_byte_ranges
from .dataframe import check_position
from .decode import Decoded, check_missing, check_options, decode
from .fetch import FetchRange, resolve

logger = logging.getLogger(__name__)


class ReducedDimensionResult:
    """
    A wobbegong reduced dimension result, e.g. a PCA or t-SNE embedding.

    Stored column-major: each column holds one dimension for every row, and
    is one chunk of `path/content`.
    """

    def __init__(self, summary: dict[str, Any], path: str, fetch_range: FetchRange):
        self._summary = summary
        self._path = path + "/content"
        self._fetch = fetch_range
        self._bytes: list[int] = compute_byte_ranges(summary["column_bytes"])

    def number_of_rows(self) -> int:
        return self._summary["row_count"]

    def number_of_columns(self) -> int:
        return len(self._summary["column_bytes"])

    def type(self) -> str:
        return self._summary["type"]

    async def column(self, i: int, **options: Any) -> Decoded:
        """Contents of column `i`, of length `number_of_rows()`. Accepts `missing`, see `decode_integers`."""
        check_options(options, ("missing",))
        missing: str = options.get("missing", "null")
        check_missing(missing)

        i = check_position(i, self.number_of_columns(), "column")
        start, end = self._bytes[i], self._bytes[i + 1]
        logger.debug("Fetching column %d of %s: [%d, %d)", i, self._path, start, end)
        payload = await resolve(self._fetch(self._path, start, end))
        return decode(payload, self.type(), self._summary["byte_order"], missing=missing)
