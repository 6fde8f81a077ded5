import logging
from typing import Any

import numpy as np

from .byte_utils import compute_byte_ranges
from .decode import Decoded, check_missing, check_options, decode, decode_strings
from .fetch import FetchRange, resolve

logger = logging.getLogger(__name__)


def check_position(i: Any, count: int, what: str) -> int:
    """Validate `i` as a position in `[0, count)`, accepting numpy integers."""
    if isinstance(i, bool) or not isinstance(i, (int, np.integer)) or not 0 <= i < count:
        raise IndexError(f"{what} index {i!r} is out of range for {count} entries")
    return int(i)


def find_index(i: int | str, names: list[str], what: str) -> int:
    """Resolve `i`, a position or a name, against `names`."""
    if isinstance(i, str):
        try:
            return names.index(i)
        except ValueError:
            raise KeyError(f"could not find {what} named '{i}'") from None
    return check_position(i, len(names), what)


def describe(names: list[str], types: list[str]) -> list[dict[str, str]]:
    return [{"name": n, "type": t} for n, t in zip(names, types)]


class DataFrame:
    """
    A wobbegong data frame: columns of integers, doubles, strings or booleans
    that all have the same length, optionally with row names.

    Each column is one chunk of `path/content`. Row names, if present, are
    stored as one more string chunk after the last column.
    """

    def __init__(self, summary: dict[str, Any], path: str, fetch_range: FetchRange):
        """
        ### Parameters
        - **summary** (dict): the parsed `summary.json` of the data frame.
        - **path** (str): directory of the data frame, a local path or a URL
          prefix depending on how the files are hosted.
        - **fetch_range** (`FetchRange`): called as `fetch_range(file, start, end)`
          to retrieve `[start, end)` of `file`, synchronously or not.
        """
        self._summary = summary
        self._path = path + "/content"
        self._fetch = fetch_range
        self._bytes: list[int] = compute_byte_ranges(summary["columns"]["bytes"])

    def has_row_names(self) -> bool:
        return self._summary["has_row_names"]

    def number_of_rows(self) -> int:
        return self._summary["row_count"]

    def number_of_columns(self) -> int:
        return len(self._summary["columns"]["names"])

    async def _fetch_chunk(self, i: int) -> bytes:
        start, end = self._bytes[i], self._bytes[i + 1]
        logger.debug("Fetching chunk %d of %s: [%d, %d)", i, self._path, start, end)
        return await resolve(self._fetch(self._path, start, end))

    async def row_names(self) -> list[str | None] | None:
        """Names of the rows, or `None` if the data frame has none."""
        if not self.has_row_names():
            return None
        payload = await self._fetch_chunk(self.number_of_columns())
        return decode_strings(payload)

    def column_names(self, **options: Any) -> list[str] | list[dict[str, str]]:
        """
        Names of the columns. With `types=True`, each entry is instead a dict
        holding the `name` and `type` of the column.
        """
        check_options(options, ("types",))
        columns = self._summary["columns"]
        if not options.get("types", False):
            return columns["names"]
        return describe(columns["names"], columns["types"])

    async def column(self, i: int | str, **options: Any) -> Decoded | dict[str, Any]:
        """
        Contents of column `i`, given by position or by name.

        ### Options
        - `missing`: handling of missing integers, see `decode_integers`.
        - `type`: if True, return `{"type": ..., "value": ...}` instead of the
          bare contents.
        """
        check_options(options, ("missing", "type"))
        missing: str = options.get("missing", "null")
        check_missing(missing)

        columns = self._summary["columns"]
        i = find_index(i, columns["names"], "column")
        payload = await self._fetch_chunk(i)
        curtype: str = columns["types"][i]
        output = decode(payload, curtype, self._summary["byte_order"], missing=missing)

        if options.get("type", False):
            return {"type": curtype, "value": output}
        return output
