from .dataframe import DataFrame
from .errors import UnknownObjectError
from .fetch import FetchJson, FetchRange, resolve
from .summarized_experiment import SummarizedExperiment

EXPERIMENT_OBJECTS: tuple[str, ...] = (
    "summarized_experiment",
    "single_cell_experiment",
)


async def load(
    path: str, fetch_json: FetchJson, fetch_range: FetchRange
) -> DataFrame | SummarizedExperiment:
    """
    Open the wobbegong object stored in the directory `path`.

    The kind of object is read from `path/summary.json`; a `data_frame` gives a
    `DataFrame`, and a `summarized_experiment` or `single_cell_experiment` gives
    a `SummarizedExperiment`.

    ```python
    from py_wobbegong import load, local_fetch_json, local_fetch_range

    se = await load("my_dataset", local_fetch_json, local_fetch_range)
    counts = await se.assay("counts")
    print(await counts.statistic("row_sum"))
    ```
    """
    summary = await resolve(fetch_json(path + "/summary.json"))
    kind = summary.get("object")
    if kind == "data_frame":
        return DataFrame(summary, path, fetch_range)
    if kind in EXPERIMENT_OBJECTS:
        return SummarizedExperiment(summary, path, fetch_json, fetch_range)
    raise UnknownObjectError(f"unknown object type '{kind}' at path '{path}'")
