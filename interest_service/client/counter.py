"""Client-side submission counter with polling.

Fetches the count once on start, polls on a fixed interval, and refreshes
shortly after each accepted submission seen on the broadcast channel. A
count that cannot be fetched is displayed as 0.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Optional, Set

import httpx

from interest_service.shared.interest.broadcast import SubmissionBroadcast

COUNT_PATH = "/api/interest/count"


class CountFetchError(Exception):
    """The count endpoint answered, but not with a usable count."""


class SubmissionCounter:

    def __init__(
        self,
        base_url: str = "",
        http_client: Optional[httpx.AsyncClient] = None,
        broadcast: Optional[SubmissionBroadcast] = None,
        auto_refresh: bool = True,
        refresh_interval: float = 30.0,
        fallback_delay: float = 5.0,
        broadcast_delay: float = 1.0,
        timeout: float = 10.0,
        public_key: Optional[str] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.http_client = http_client
        self.broadcast = broadcast
        self.auto_refresh = auto_refresh
        self.refresh_interval = refresh_interval
        self.fallback_delay = fallback_delay
        self.broadcast_delay = broadcast_delay
        self.timeout = timeout
        self.public_key = public_key

        self.count: Optional[int] = None
        self.is_loading = False
        self.error: Optional[str] = None
        self.last_updated: Optional[str] = None

        self._tasks: Set[asyncio.Task] = set()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._unsubscribe = None

    async def fetch_count(self) -> None:
        """Fetch the count. Errors land in self.error; never raises."""
        self.is_loading = True
        self.error = None
        try:
            self.count = await self._request_count()
            self.last_updated = datetime.now(timezone.utc).isoformat()
        except (httpx.HTTPError, ValueError, TypeError, CountFetchError) as e:
            self.error = str(e) or "Failed to fetch submission count"
            logging.error(f"Error fetching submission count: {self.error}")
            self._set_fallback_count()
        finally:
            self.is_loading = False

    async def refresh_count(self) -> None:
        # Check-then-fetch is not atomic; two triggers can both get past it
        if self.is_loading:
            return
        await self.fetch_count()

    def clear_error(self) -> None:
        self.error = None

    async def start(self) -> None:
        """Begin the initial fetch, fallback timer, polling and broadcast listening."""
        if self._loop is not None:
            return
        self._loop = asyncio.get_running_loop()

        self._spawn(self.fetch_count())
        self._spawn(self._fallback_after_delay())
        if self.auto_refresh:
            self._spawn(self._poll())
        if self.broadcast is not None:
            self._unsubscribe = self.broadcast.subscribe(self._on_submission)

    async def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        self._loop = None

    async def __aenter__(self) -> "SubmissionCounter":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    def _set_fallback_count(self) -> None:
        if self.count is None:
            self.count = 0

    async def _request_count(self) -> int:
        url = f"{self.base_url}{COUNT_PATH}"
        headers = {"Content-Type": "application/json"}
        if self.public_key:
            headers["apikey"] = self.public_key

        if self.http_client is not None:
            response = await self.http_client.get(url, headers=headers, timeout=self.timeout)
        else:
            async with httpx.AsyncClient() as client:
                response = await client.get(url, headers=headers, timeout=self.timeout)

        if not response.is_success:
            raise CountFetchError(f"HTTP {response.status_code}: {response.reason_phrase}")

        result = response.json()
        if not isinstance(result, dict):
            raise CountFetchError("Failed to fetch count")
        data = result.get("data")
        if not result.get("success") or not isinstance(data, dict) or "count" not in data:
            raise CountFetchError(result.get("message") or result.get("error") or "Failed to fetch count")
        return int(data["count"])

    async def _fallback_after_delay(self) -> None:
        await asyncio.sleep(self.fallback_delay)
        # Leave the in-flight request running; just stop showing a spinner
        if self.is_loading and self.count is None:
            self._set_fallback_count()

    async def _poll(self) -> None:
        while True:
            await asyncio.sleep(self.refresh_interval)
            await self.refresh_count()

    async def _refresh_after_delay(self) -> None:
        # Give the store a moment to make the new row visible
        await asyncio.sleep(self.broadcast_delay)
        await self.refresh_count()

    def _on_submission(self, submission: Any) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        # Publishers may live on another thread (e.g. a sync request handler)
        loop.call_soon_threadsafe(self._spawn_delayed_refresh)

    def _spawn_delayed_refresh(self) -> None:
        if self._loop is not None:
            self._spawn(self._refresh_after_delay())

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task
