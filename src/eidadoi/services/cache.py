"""In-memory store for the most recent registry harvest."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone

import structlog

from eidadoi.models import DOIRecord

logger = structlog.get_logger(__name__)


class DOICache:
    """Holds one harvest generation of DOI records.

    Contents are kept as an immutable tuple and swapped by a single reference
    assignment, so a reader always sees one complete generation.
    """

    def __init__(self) -> None:
        self._records: tuple[DOIRecord, ...] = ()
        self._updated_at: datetime | None = None
        self._generation = 0

    def replace(self, records: Iterable[DOIRecord]) -> None:
        frozen = tuple(records)
        self._records = frozen
        self._updated_at = datetime.now(timezone.utc)
        self._generation += 1
        logger.debug("cache.replaced", records=len(frozen), generation=self._generation)

    def snapshot(self) -> tuple[DOIRecord, ...]:
        return self._records

    @property
    def updated_at(self) -> datetime | None:
        return self._updated_at

    @property
    def generation(self) -> int:
        return self._generation

    def __len__(self) -> int:
        return len(self._records)
