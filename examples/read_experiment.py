# Print a quick overview of a wobbegong SummarizedExperiment, either from a
# local directory or from a URL serving the same layout.
#
#   python examples/read_experiment.py path/to/dataset
#   python examples/read_experiment.py https://example.org/datasets/pbmc

import asyncio
import logging
import sys

from py_wobbegong import (
    DataFrame,
    HttpxFetcher,
    SummarizedExperiment,
    load,
    local_fetch_json,
    local_fetch_range,
)


async def describe(se: SummarizedExperiment | DataFrame) -> None:
    if isinstance(se, DataFrame):
        print(f"data frame with {se.number_of_rows()} rows")
        print("columns:", se.column_names(types=True))
        return

    print(f"{se.number_of_rows()} rows x {se.number_of_columns()} columns")

    column_data = await se.column_data()
    if column_data is not None:
        print("column data:", column_data.column_names(types=True))

    for name in se.assay_names():
        assay = await se.assay(name)
        kind = "sparse" if assay.sparse() else "dense"
        print(f"assay '{name}' ({kind} {assay.type()})")
        first = await assay.row(0, as_dense=True)
        print("  first row:", first[:10])
        if "row_sum" in assay.statistic_names():
            print("  row sums:", (await assay.statistic("row_sum"))[:10])

    for name in se.reduced_dimension_names() or []:
        rd = await se.reduced_dimension(name)
        print(f"reduced dimension '{name}': {rd.number_of_columns()} components")


async def main(location: str) -> None:
    if "://" in location:
        async with HttpxFetcher() as fetcher:
            obj = await load(location, fetcher.fetch_json, fetcher.fetch_range)
            await describe(obj)
    else:
        obj = await load(location, local_fetch_json, local_fetch_range)
        await describe(obj)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main(sys.argv[1]))
