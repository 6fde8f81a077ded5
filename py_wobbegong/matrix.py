import logging
from typing import Any

from .byte_utils import compute_byte_ranges
from .dataframe import describe
from .decode import Decoded, check_missing, check_options, decode
from .fetch import FetchRange, resolve
from .rows import RowLayout, SparseRow, decode_row, row_range

logger = logging.getLogger(__name__)


class MatrixStatistics:
    """Per-row and per-column statistics of a matrix, stored in `path/stats`."""

    def __init__(
        self, summary: dict[str, Any], path: str, order: str, fetch_range: FetchRange
    ):
        self._summary = summary
        self._path = path + "/stats"
        self._fetch = fetch_range
        self._order = order
        self._bytes: list[int] = compute_byte_ranges(summary["bytes"])

    def names(self, **options: Any) -> list[str] | list[dict[str, str]]:
        check_options(options, ("types",))
        if not options.get("types", False):
            return self._summary["names"]
        return describe(self._summary["names"], self._summary["types"])

    async def get(self, name: str, **options: Any) -> Decoded | dict[str, Any]:
        check_options(options, ("missing", "type"))
        missing: str = options.get("missing", "null")
        check_missing(missing)

        names: list[str] = self._summary["names"]
        if name not in names:
            raise KeyError(f"could not find statistic named '{name}'")
        i = names.index(name)

        start, end = self._bytes[i], self._bytes[i + 1]
        logger.debug(
            "Fetching statistic '%s' of %s: [%d, %d)", name, self._path, start, end
        )
        payload = await resolve(self._fetch(self._path, start, end))
        curtype: str = self._summary["types"][i]
        output = decode(payload, curtype, self._order, missing=missing)

        if options.get("type", False):
            return {"type": curtype, "value": output}
        return output


class Matrix:
    """
    A wobbegong matrix, either row-major dense or compressed sparse row.

    Every matrix also carries at least these statistics:
    - `row_sum`, the summed value within each row.
    - `column_sum`, the summed value within each column.
    - `row_nonzero`, the number of non-zero entries within each row.
    - `column_nonzero`, the number of non-zero entries within each column.
    """

    def __init__(self, summary: dict[str, Any], path: str, fetch_range: FetchRange):
        """
        `summary` is the parsed `summary.json` of the matrix, `path` its
        directory and `fetch_range` the byte-range fetcher, see `DataFrame`.
        """
        self._summary = summary
        self._path = path + "/content"
        self._fetch = fetch_range
        self._layout: RowLayout = RowLayout.from_summary(summary)
        self._statistics = MatrixStatistics(
            summary["statistics"], path, summary["byte_order"], fetch_range
        )

    def number_of_rows(self) -> int:
        return self._layout.row_count

    def number_of_columns(self) -> int:
        return self._layout.column_count

    def sparse(self) -> bool:
        return self._layout.sparse

    def type(self) -> str:
        """Type of the matrix, usually `boolean`, `integer` or `double`."""
        return self._layout.type

    async def row(self, i: int, **options: Any) -> Decoded | SparseRow:
        """
        Contents of row `i`.

        For a dense matrix, or with `as_dense=True`, this is an array of length
        `number_of_columns()`. Otherwise it is a `SparseRow` holding the values
        of the structural non-zero entries and their sorted, unique column
        indices.

        ### Options
        - `missing`: handling of missing integers, see `decode_integers`.
        - `as_dense`: expand a sparse row with explicit zeros.
        """
        check_options(options, ("missing", "as_dense"))
        check_missing(options.get("missing", "null"))

        bounds = row_range(self._layout, i)
        start, end = bounds[0], bounds[-1]
        logger.debug("Fetching row %d of %s: [%d, %d)", i, self._path, start, end)
        payload = await resolve(self._fetch(self._path, start, end))
        return decode_row(payload, self._layout, i, **options)

    def statistic_names(self, **options: Any) -> list[str] | list[dict[str, str]]:
        """Names of the available statistics, with their types if `types=True`."""
        return self._statistics.names(**options)

    async def statistic(self, name: str, **options: Any) -> Decoded | dict[str, Any]:
        """
        Retrieve a statistic by name. Accepts the same `missing` and `type`
        options as `DataFrame.column`.
        """
        return await self._statistics.get(name, **options)

