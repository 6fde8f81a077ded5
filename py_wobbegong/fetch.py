import asyncio
import inspect
import json
import logging
import random
from typing import Any, Awaitable, Callable, Dict, Tuple, TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")

FetchRange = Callable[[str, int, int], bytes | Awaitable[bytes]]
"""
Retrieve the bytes of `file` in `[start, end)`. May be synchronous or return an awaitable.
"""

FetchJson = Callable[[str], Any | Awaitable[Any]]
"""
Retrieve and parse the JSON document at `path`. May be synchronous or return an awaitable.
"""


async def resolve(value: T | Awaitable[T]) -> T:
    """Await `value` if a fetcher handed back an awaitable, otherwise return it as-is."""
    if inspect.isawaitable(value):
        return await value
    return value


def _check_range(start: int, end: int) -> None:
    if start < 0 or end < start:
        raise ValueError(f"invalid byte range [{start}, {end})")


def local_fetch_range(path: str, start: int, end: int) -> bytes:
    """Read `[start, end)` from a file on the local filesystem."""
    _check_range(start, end)
    with open(path, "rb") as f:
        f.seek(start)
        data = f.read(end - start)
    if len(data) != end - start:
        raise EOFError(
            f"'{path}' ended after {len(data)} of the {end - start} requested bytes"
        )
    return data


def local_fetch_json(path: str) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


class HttpxFetcher:
    """
    Fetches wobbegong files over HTTP with `Range` requests.

    Pass the bound methods `fetch_range` and `fetch_json` wherever a fetcher is
    expected, e.g. `load(path, fetcher.fetch_json, fetcher.fetch_range)`.
    Relative paths are resolved against `base_url`.

    ### `httpx.AsyncClient` Management
    If `client` is not provided, one is created lazily per event loop and is
    owned by this instance, so call `await fetcher.aclose()` or use it in an
    `async with` block:
    ```python
    async with HttpxFetcher(base_url="https://example.org/datasets/") as fetcher:
        se = await load("pbmc", fetcher.fetch_json, fetcher.fetch_range)
        counts = await se.assay("counts")
        first = await counts.row(0)
    ```
    A user-supplied client is never closed by the fetcher; any default headers
    or auth configured on it are reused for every request.

    ### Retries
    Timeouts and transport errors are retried up to `max_retries` times with
    exponential backoff, starting at `initial_delay` seconds and multiplying by
    `backoff_factor` each attempt, plus a little jitter. Once retries run out a timeout is re-raised as
    `httpx.TimeoutException` naming the URL, and any other transport error
    propagates unchanged. HTTP status errors are raised immediately.
    """

    DEFAULT_TIMEOUT: float = 60.0

    def __init__(
        self,
        base_url: str = "",
        client: httpx.AsyncClient | None = None,
        concurrency: int = 32,
        *,
        headers: dict[str, str] | None = None,
        auth: Tuple[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = 3,
        initial_delay: float = 1.0,
        backoff_factor: float = 2.0,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be positive")
        if max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if initial_delay <= 0:
            raise ValueError("initial_delay must be positive")
        if backoff_factor < 1.0:
            raise ValueError("backoff_factor must be >= 1.0 for exponential backoff")

        self.base_url: str = base_url
        self.timeout: float = timeout
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.backoff_factor = backoff_factor

        self._default_headers = headers
        self._default_auth = auth
        self._closed: bool = False

        if client is not None:
            # A client was supplied by the user. We don't own it.
            self._owns_client: bool = False
            self._client_per_loop: Dict[
                asyncio.AbstractEventLoop, httpx.AsyncClient
            ] = {asyncio.get_running_loop(): client}
        else:
            self._owns_client = True
            self._client_per_loop = {}

        self._sem: asyncio.Semaphore = asyncio.Semaphore(concurrency)

    def _loop_client(self) -> httpx.AsyncClient:
        """Get or create the client bound to the current event loop."""
        if self._closed:
            if not self._owns_client:
                raise RuntimeError("HttpxFetcher is closed; create a new instance")
            self._closed = False
            self._client_per_loop = {}

        loop: asyncio.AbstractEventLoop = asyncio.get_running_loop()
        try:
            return self._client_per_loop[loop]
        except KeyError:
            client = httpx.AsyncClient(
                timeout=self.timeout,
                headers=self._default_headers,
                auth=self._default_auth,
                limits=httpx.Limits(max_connections=64, max_keepalive_connections=32),
            )
            self._client_per_loop[loop] = client
            return client

    async def aclose(self) -> None:
        """Close every internally-created client."""
        if not self._owns_client:
            return

        for client in list(self._client_per_loop.values()):
            if not client.is_closed:
                await client.aclose()

        self._client_per_loop.clear()
        self._closed = True

    async def __aenter__(self) -> "HttpxFetcher":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    def url(self, path: str) -> str:
        if not self.base_url or "://" in path:
            return path
        if self.base_url.endswith("/"):
            return self.base_url + path.lstrip("/")
        return f"{self.base_url}/{path.lstrip('/')}"

    async def _get(self, url: str, headers: Dict[str, str] | None) -> httpx.Response:
        async with self._sem:
            client = self._loop_client()
            retry_count = 0

            while retry_count <= self.max_retries:
                try:
                    response = await client.get(url, headers=headers)
                    response.raise_for_status()
                    return response

                except (httpx.TimeoutException, httpx.RequestError) as e:
                    retry_count += 1
                    if retry_count > self.max_retries:
                        if not isinstance(e, httpx.TimeoutException):
                            raise
                        raise httpx.TimeoutException(
                            f"Failed to fetch {url} after {self.max_retries} retries: {str(e)}",
                            request=e.request,
                        ) from e

                    delay = self.initial_delay * (
                        self.backoff_factor ** (retry_count - 1)
                    )
                    jitter = delay * 0.1 * (random.random() - 0.5)
                    logger.warning(
                        "Request for %s failed (%s), retry %d of %d in %.2fs",
                        url,
                        e,
                        retry_count,
                        self.max_retries,
                        delay + jitter,
                    )
                    await asyncio.sleep(delay + jitter)

        raise RuntimeError("Exited the retry loop unexpectedly.")  # pragma: no cover

    async def fetch_range(self, path: str, start: int, end: int) -> bytes:
        """Fetch `[start, end)` of `path`."""
        _check_range(start, end)
        if start == end:
            return b""

        url = self.url(path)
        # HTTP ranges are inclusive at both ends
        response = await self._get(url, {"Range": f"bytes={start}-{end - 1}"})
        content = response.content
        if response.status_code != httpx.codes.PARTIAL_CONTENT:
            logger.debug("%s ignored the Range header, slicing the full body", url)
            content = content[start:end]
        if len(content) != end - start:
            raise EOFError(
                f"'{url}' returned {len(content)} of the {end - start} requested bytes"
            )
        return content

    async def fetch_json(self, path: str) -> Any:
        response = await self._get(self.url(path), None)
        return response.json()
