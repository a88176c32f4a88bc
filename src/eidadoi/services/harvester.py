"""Periodic harvesting of the FDSN network DOI registry."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

import httpx
import structlog

from eidadoi.models import DOIRecord
from eidadoi.services.cache import DOICache
from eidadoi.settings import Settings

logger = structlog.get_logger(__name__)

RECORD_DELIMITER = "\r\n"
FIELD_DELIMITER = ","
REDIRECT_STATUSES = {301, 302, 303, 307, 308}


class HarvestError(RuntimeError):
    """Raised when a harvest cycle cannot produce a usable registry."""


class MissingLocationHeader(HarvestError):
    def __init__(self, url: str, status: int) -> None:
        super().__init__(f"Redirect from {url} (status {status}) has no Location header")


class RedirectLimitExceeded(HarvestError):
    def __init__(self, max_redirects: int, hops: list[str]) -> None:
        self.hops = hops
        super().__init__(f"Redirect chain exceeded {max_redirects} hops: {' -> '.join(hops)}")


class HarvestState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    PARSING = "parsing"
    FAILED = "failed"


@dataclass(slots=True)
class HarvestOutcome:
    success: bool
    next_delay: float
    records: int = 0
    url: str | None = None
    error: str | None = None


def parse_registry(body: str) -> list[DOIRecord]:
    """Parse CRLF-delimited ``network,doi`` lines.

    Lines without two non-empty fields are skipped.
    """
    lines = body.split(RECORD_DELIMITER)
    if lines and lines[-1] == "":
        lines.pop()
    records: list[DOIRecord] = []
    for lineno, line in enumerate(lines, start=1):
        fields = [field.strip() for field in line.split(FIELD_DELIMITER)]
        if len(fields) < 2 or not fields[0] or not fields[1]:
            logger.warning("harvest.malformed_line", line=lineno, content=line[:120])
            continue
        records.append(DOIRecord(network=fields[0], doi=fields[1]))
    return records


class Harvester:
    """Keeps a :class:`DOICache` in sync with the upstream registry.

    One asyncio task loops over fetch, parse and commit, then sleeps for the
    refresh interval after a success or the retry delay after a failure.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        cache: DOICache,
        settings: Settings,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._cache = cache
        self._settings = settings
        self._sleep = sleep
        self._task: asyncio.Task[None] | None = None
        self.state = HarvestState.IDLE
        self.last_outcome: HarvestOutcome | None = None

    async def fetch(self) -> tuple[str, str]:
        """GET the upstream registry, following redirects manually.

        Returns the final URL and the response body.
        """
        url = self._settings.upstream_url
        hops = [url]
        while True:
            try:
                response = await self._client.get(url, timeout=self._settings.request_timeout)
            except httpx.HTTPError as exc:
                raise HarvestError(f"Request to {url} failed: {exc}") from exc
            if response.status_code in REDIRECT_STATUSES:
                location = response.headers.get("location")
                if not location:
                    raise MissingLocationHeader(url, response.status_code)
                if len(hops) > self._settings.max_redirects:
                    raise RedirectLimitExceeded(self._settings.max_redirects, hops)
                url = str(response.url.join(location))
                hops.append(url)
                logger.info("harvest.redirect", status=response.status_code, target=url)
                continue
            if response.status_code != httpx.codes.OK:
                raise HarvestError(f"Upstream {url} answered with status {response.status_code}")
            return url, response.text

    async def run_cycle(self) -> HarvestOutcome:
        """Run one fetch/parse/commit cycle; failures are absorbed and logged."""
        self.state = HarvestState.FETCHING
        logger.info("harvest.start", url=self._settings.upstream_url)
        try:
            url, body = await self.fetch()
            self.state = HarvestState.PARSING
            records = parse_registry(body)
            if not records:
                raise HarvestError(f"Upstream {url} returned no usable records")
        except HarvestError as exc:
            self.state = HarvestState.FAILED
            outcome = HarvestOutcome(
                success=False,
                next_delay=self._settings.retry_delay,
                error=str(exc),
            )
            logger.warning("harvest.failed", error=str(exc), retry_in=outcome.next_delay)
        else:
            self._cache.replace(records)
            outcome = HarvestOutcome(
                success=True,
                next_delay=self._settings.refresh_interval,
                records=len(records),
                url=url,
            )
            logger.info("harvest.committed", records=len(records), url=url)
        self.state = HarvestState.IDLE
        self.last_outcome = outcome
        return outcome

    async def run(self) -> None:
        while True:
            outcome = await self.run_cycle()
            await self._sleep(outcome.next_delay)

    def start(self) -> asyncio.Task[None]:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name="eidadoi-harvester")
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
