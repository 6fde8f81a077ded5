import logging
from typing import Any

from .dataframe import DataFrame, find_index
from .fetch import FetchJson, FetchRange, resolve
from .matrix import Matrix
from .reduced_dimension import ReducedDimensionResult

logger = logging.getLogger(__name__)


class SummarizedExperiment:
    """
    A wobbegong SummarizedExperiment (or SingleCellExperiment).

    Nothing but the top-level summary is loaded up front. Row data, column
    data, assays and reduced dimensions each live in their own subdirectory
    and are only opened, by fetching their `summary.json`, when requested:

    ```
    path/
      summary.json
      row_data/            # DataFrame, if has_row_data
      column_data/         # DataFrame, if has_column_data
      assays/<i>/          # Matrix, one per assay name
      reduced_dimensions/<i>/  # ReducedDimensionResult, one per name
    ```
    """

    def __init__(
        self,
        summary: dict[str, Any],
        path: str,
        fetch_json: FetchJson,
        fetch_range: FetchRange,
    ):
        """
        ### Parameters
        - **fetch_json** (`FetchJson`): called as `fetch_json(file)` to load
          and parse a JSON file, synchronously or not.
        - **fetch_range** (`FetchRange`): byte-range fetcher, see `DataFrame`.
        """
        self._summary = summary
        self._path = path
        self._fetch_json = fetch_json
        self._fetch_range = fetch_range

    def number_of_rows(self) -> int:
        return self._summary["row_count"]

    def number_of_columns(self) -> int:
        return self._summary["column_count"]

    def has_row_data(self) -> bool:
        return self._summary["has_row_data"]

    def has_column_data(self) -> bool:
        return self._summary["has_column_data"]

    async def _summary_at(self, path: str) -> dict[str, Any]:
        logger.debug("Fetching summary of %s", path)
        return await resolve(self._fetch_json(path + "/summary.json"))

    async def row_data(self) -> DataFrame | None:
        if not self.has_row_data():
            return None
        path = self._path + "/row_data"
        return DataFrame(await self._summary_at(path), path, self._fetch_range)

    async def column_data(self) -> DataFrame | None:
        if not self.has_column_data():
            return None
        path = self._path + "/column_data"
        return DataFrame(await self._summary_at(path), path, self._fetch_range)

    def assay_names(self) -> list[str]:
        return self._summary["assay_names"]

    async def assay(self, i: int | str) -> Matrix:
        """The assay matrix `i`, given by position or by name."""
        i = find_index(i, self.assay_names(), "assay")
        path = f"{self._path}/assays/{i}"
        return Matrix(await self._summary_at(path), path, self._fetch_range)

    def has_reduced_dimensions(self) -> bool:
        return "reduced_dimension_names" in self._summary

    def reduced_dimension_names(self) -> list[str] | None:
        return self._summary.get("reduced_dimension_names")

    async def reduced_dimension(self, i: int | str) -> ReducedDimensionResult | None:
        """The reduced dimension result `i`, by position or name, or `None` if there are none."""
        names = self.reduced_dimension_names()
        if names is None:
            return None
        i = find_index(i, names, "reduced dimension")
        path = f"{self._path}/reduced_dimensions/{i}"
        return ReducedDimensionResult(
            await self._summary_at(path), path, self._fetch_range
        )
