import json
import os
import re

import httpx
import numpy as np
import pytest

from py_wobbegong import HttpxFetcher, SummarizedExperiment, load
from py_wobbegong.fetch import local_fetch_json, local_fetch_range, resolve

BASE_URL = "https://wobbegong.test/datasets"


def serve_directory(root: str, honor_range: bool = True):
    """A MockTransport handler serving files under `root`, with byte-range support."""
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        relative = request.url.path.removeprefix("/datasets/")
        path = os.path.join(root, relative)
        if not os.path.isfile(path):
            return httpx.Response(404)
        with open(path, "rb") as f:
            data = f.read()

        header = request.headers.get("Range")
        if header is None or not honor_range:
            return httpx.Response(200, content=data)
        match = re.fullmatch(r"bytes=(\d+)-(\d+)", header)
        assert match is not None
        start, end = int(match.group(1)), int(match.group(2))
        return httpx.Response(206, content=data[start : end + 1])

    return handler, requests


@pytest.fixture
def served_file(tmp_path):
    path = tmp_path / "content"
    path.write_bytes(bytes(range(100)))
    return str(tmp_path), "content"


def test_local_fetch_range(served_file):
    root, name = served_file
    path = os.path.join(root, name)
    assert local_fetch_range(path, 0, 3) == bytes([0, 1, 2])
    assert local_fetch_range(path, 98, 100) == bytes([98, 99])
    assert local_fetch_range(path, 10, 10) == b""

    with pytest.raises(ValueError, match="invalid byte range"):
        local_fetch_range(path, 5, 4)
    with pytest.raises(ValueError, match="invalid byte range"):
        local_fetch_range(path, -1, 4)
    with pytest.raises(EOFError):
        local_fetch_range(path, 90, 110)


def test_local_fetch_json(tmp_path):
    path = tmp_path / "summary.json"
    path.write_text(json.dumps({"object": "data_frame"}))
    assert local_fetch_json(str(path)) == {"object": "data_frame"}


@pytest.mark.asyncio
async def test_resolve():
    async def later():
        return 5

    assert await resolve(5) == 5
    assert await resolve(later()) == 5


@pytest.mark.asyncio
async def test_httpx_fetch_range(served_file):
    root, name = served_file
    handler, requests = serve_directory(root)
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        fetcher = HttpxFetcher(base_url=BASE_URL, client=client)
        assert await fetcher.fetch_range(name, 10, 15) == bytes(range(10, 15))
        assert requests[-1].headers["Range"] == "bytes=10-14"
        assert str(requests[-1].url) == f"{BASE_URL}/content"

        # Empty ranges never hit the network
        assert await fetcher.fetch_range(name, 7, 7) == b""
        assert len(requests) == 1

        with pytest.raises(ValueError, match="invalid byte range"):
            await fetcher.fetch_range(name, 8, 7)

        # Closing a fetcher does not close a client it does not own
        await fetcher.aclose()
        assert not client.is_closed


@pytest.mark.asyncio
async def test_httpx_fetch_range_without_range_support(served_file):
    root, name = served_file
    handler, _ = serve_directory(root, honor_range=False)
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        fetcher = HttpxFetcher(base_url=BASE_URL + "/", client=client)
        assert await fetcher.fetch_range(name, 95, 100) == bytes(range(95, 100))
        with pytest.raises(EOFError):
            await fetcher.fetch_range(name, 95, 105)


@pytest.mark.asyncio
async def test_httpx_status_errors_are_not_retried(served_file):
    root, _ = served_file
    handler, requests = serve_directory(root)
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        fetcher = HttpxFetcher(base_url=BASE_URL, client=client, max_retries=3)
        with pytest.raises(httpx.HTTPStatusError):
            await fetcher.fetch_range("missing", 0, 10)
        assert len(requests) == 1


@pytest.mark.asyncio
async def test_httpx_retries_transport_errors(served_file):
    root, name = served_file
    serve, _ = serve_directory(root)
    attempts = 0

    def flaky(request: httpx.Request) -> httpx.Response:
        nonlocal attempts
        attempts += 1
        if attempts < 3:
            raise httpx.ConnectError("connection refused")
        return serve(request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(flaky)) as client:
        fetcher = HttpxFetcher(
            base_url=BASE_URL, client=client, max_retries=2, initial_delay=0.001
        )
        assert await fetcher.fetch_range(name, 0, 4) == bytes([0, 1, 2, 3])
        assert attempts == 3


@pytest.mark.asyncio
async def test_httpx_gives_up_after_max_retries():
    attempts = 0

    def down(request: httpx.Request) -> httpx.Response:
        nonlocal attempts
        attempts += 1
        raise httpx.ReadTimeout("too slow")

    async with httpx.AsyncClient(transport=httpx.MockTransport(down)) as client:
        fetcher = HttpxFetcher(
            base_url=BASE_URL, client=client, max_retries=1, initial_delay=0.001
        )
        with pytest.raises(httpx.TimeoutException, match="after 1 retries"):
            await fetcher.fetch_json("summary.json")
        assert attempts == 2


@pytest.mark.asyncio
async def test_httpx_transport_errors_keep_their_type():
    attempts = 0

    def refused(request: httpx.Request) -> httpx.Response:
        nonlocal attempts
        attempts += 1
        raise httpx.ConnectError("connection refused")

    async with httpx.AsyncClient(transport=httpx.MockTransport(refused)) as client:
        fetcher = HttpxFetcher(
            base_url=BASE_URL, client=client, max_retries=2, initial_delay=0.001
        )
        with pytest.raises(httpx.ConnectError, match="connection refused"):
            await fetcher.fetch_range("content", 0, 4)
        assert attempts == 3


@pytest.mark.asyncio
async def test_httpx_load_experiment(experiment_dir, counts):
    handler, requests = serve_directory(experiment_dir)
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        fetcher = HttpxFetcher(base_url=BASE_URL, client=client)
        se = await load("", fetcher.fetch_json, fetcher.fetch_range)
        assert isinstance(se, SummarizedExperiment)
        assert se.assay_names() == ["counts", "logcounts", "other"]

        assay = await se.assay("counts")
        row = await assay.row(7)
        np.testing.assert_array_equal(row, counts[7])

        cd = await se.column_data()
        assert (await cd.column("stuff"))[:3] == ["FOO-A-BAR", "FOO-B-BAR", None]

    ranged = [r for r in requests if "Range" in r.headers]
    assert len(ranged) == 2
    for r in ranged:
        start, end = map(int, r.headers["Range"].removeprefix("bytes=").split("-"))
        assert end - start + 1 < os.path.getsize(
            os.path.join(experiment_dir, r.url.path.removeprefix("/datasets/"))
        )


def test_httpx_url():
    f = HttpxFetcher.__new__(HttpxFetcher)
    f.base_url = BASE_URL
    assert f.url("a/content") == f"{BASE_URL}/a/content"
    assert f.url("/a/content") == f"{BASE_URL}/a/content"
    assert f.url("https://elsewhere.test/x") == "https://elsewhere.test/x"
    f.base_url = ""
    assert f.url("a/content") == "a/content"


@pytest.mark.asyncio
async def test_httpx_fetcher_validation():
    with pytest.raises(ValueError, match="max_retries must be non-negative"):
        HttpxFetcher(max_retries=-1)
    with pytest.raises(ValueError, match="initial_delay must be positive"):
        HttpxFetcher(initial_delay=0)
    with pytest.raises(ValueError, match="backoff_factor must be >= 1.0"):
        HttpxFetcher(backoff_factor=0.5)
    with pytest.raises(ValueError, match="concurrency must be positive"):
        HttpxFetcher(concurrency=0)


@pytest.mark.asyncio
async def test_httpx_owned_client_lifecycle():
    async with HttpxFetcher(base_url=BASE_URL) as fetcher:
        client = fetcher._loop_client()
        assert fetcher._loop_client() is client
        assert not client.is_closed
    assert client.is_closed
    assert fetcher._client_per_loop == {}

    # An owned client is recreated lazily after closing
    fresh = fetcher._loop_client()
    assert fresh is not client
    await fetcher.aclose()
    assert fresh.is_closed


@pytest.mark.asyncio
async def test_httpx_closed_with_user_client():
    async with httpx.AsyncClient() as client:
        fetcher = HttpxFetcher(client=client)
        fetcher._closed = True
        with pytest.raises(RuntimeError, match="HttpxFetcher is closed"):
            fetcher._loop_client()
