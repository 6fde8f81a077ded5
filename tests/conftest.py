import numpy as np
import pytest

# fixtures below write their datasets with these
from testing_utils import compress, write_experiment  # noqa: F401

from py_wobbegong.byte_utils import reset_byte_order


@pytest.fixture(autouse=True)
def fresh_byte_order():
    """Every test starts with the host byte order undetected."""
    reset_byte_order()
    yield
    reset_byte_order()


@pytest.fixture
def counts() -> np.ndarray:
    rng = np.random.default_rng(42)
    return rng.integers(0, 100, size=(50, 20), dtype=np.int32)


@pytest.fixture
def sparse_values() -> np.ndarray:
    rng = np.random.default_rng(7)
    dense = rng.normal(size=(50, 20))
    dense[rng.random(size=dense.shape) < 0.7] = 0.0
    dense[3] = 0.0  # one row without any structural non-zero
    return dense


@pytest.fixture
def experiment_dir(tmp_path, counts, sparse_values) -> str:
    """A SingleCellExperiment with row data, column data, three assays and two reduced dimensions."""
    rng = np.random.default_rng(1)
    path = str(tmp_path / "full")
    write_experiment(
        path,
        assays={
            "counts": (counts, "integer", False),
            "logcounts": (np.log1p(counts), "double", False),
            "other": (sparse_values, "double", True),
        },
        row_data={"symbol": ("string", [f"SYM{i}" for i in range(50)])},
        row_names=[f"GENE_{i}" for i in range(50)],
        column_data={
            "blah": ("double", [float("nan")] + rng.normal(size=19).tolist()),
            "whee": ("boolean", [True, None] + [i % 2 == 0 for i in range(18)]),
            "stuff": (
                "string",
                ["FOO-A-BAR", "FOO-B-BAR", None]
                + [f"FOO-{c}-BAR" for c in "CDEFGHIJKLMNOPQRS"],
            ),
            "gunk": ("integer", [1, 2, 3, None] + list(range(16))),
        },
        reduced_dimensions={
            "TSNE": rng.normal(size=(20, 4)),
            "UMAP": rng.normal(size=(20, 2)),
        },
    )
    return path


@pytest.fixture
def simple_experiment_dir(tmp_path, counts) -> str:
    """A SummarizedExperiment with only one assay and no annotations."""
    path = str(tmp_path / "simple")
    write_experiment(path, assays={"counts": (counts, "integer", False)})
    return path
