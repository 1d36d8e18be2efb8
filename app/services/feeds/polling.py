"""
Fixed-interval JSON poller.

Each tick starts a new GET and cancels the previous one if it is still in
flight. A superseded fetch is recorded as the current error, so a feed that
is always slower than the interval shows up in its state. There is no
backoff: a failing feed is retried on the next tick, forever, until stop()
is called.
"""

import asyncio
import contextlib
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import httpx

from app.infrastructure.observability.logging import get_logger
from app.models.domain.feed_domain import FeedState

logger = get_logger(__name__)

DEFAULT_INTERVAL_SECONDS = 7.0
REQUEST_TIMEOUT = 10  # seconds
SUPERSEDED_ERROR = "Request superseded by a newer fetch before it completed"


class FeedFetchError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class PollingFeedClient:
    """
    Keeps the latest payload of one JSON document.

    Args:
        name: Feed name used in logs and routes
        url: Document URL
        parse: Turns decoded JSON into the stored data
        interval_seconds: Tick length; None fetches once on start
        client: Optional shared httpx.AsyncClient (not closed by stop())
    """

    def __init__(
        self,
        name: str,
        url: str,
        parse: Callable[[Any], Any] = lambda payload: payload,
        interval_seconds: float | None = DEFAULT_INTERVAL_SECONDS,
        client: httpx.AsyncClient | None = None,
    ):
        self.name = name
        self.url = url
        self.parse = parse
        self.interval_seconds = interval_seconds
        self.state = FeedState()

        self._client = client
        self._owns_client = client is None
        self._loop_task: asyncio.Task | None = None
        self._inflight: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=REQUEST_TIMEOUT)
        return self._client

    async def _fetch(self) -> None:
        try:
            response = await self._http().get(self.url)
            if response.status_code >= 400:
                raise FeedFetchError(
                    f"HTTP error! status: {response.status_code}",
                    status_code=response.status_code,
                )
            data = self.parse(response.json())
        except asyncio.CancelledError:
            self.state.loading = False
            raise
        except Exception as e:
            self.state.error = str(e)
            self.state.loading = False
            logger.warning("Feed fetch failed", feed=self.name, error=str(e), error_type=type(e).__name__)
            return

        self.state.data = data
        self.state.error = None
        self.state.loading = False
        self.state.last_updated = datetime.now(UTC)
        logger.debug("Feed refreshed", feed=self.name)

    def _launch_fetch(self) -> asyncio.Task:
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
            self.state.error = SUPERSEDED_ERROR
            self.state.loading = False
            logger.warning("Cancelled in-flight feed fetch", feed=self.name)
        self._inflight = asyncio.create_task(self._fetch(), name=f"feed-fetch-{self.name}")
        return self._inflight

    async def reload(self) -> FeedState:
        """Fetch now and return the resulting state."""
        task = self._launch_fetch()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        return self.state

    async def _run(self) -> None:
        self._launch_fetch()
        if self.interval_seconds is None:
            return
        while True:
            await asyncio.sleep(self.interval_seconds)
            self._launch_fetch()

    async def start(self) -> None:
        if self.running:
            return
        logger.info("Starting feed poller", feed=self.name, interval_seconds=self.interval_seconds)
        self._loop_task = asyncio.create_task(self._run(), name=f"feed-poll-{self.name}")

    async def stop(self) -> None:
        for task in (self._loop_task, self._inflight):
            if task is not None and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._loop_task = None
        self._inflight = None

        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

        logger.info("Feed poller stopped", feed=self.name)
