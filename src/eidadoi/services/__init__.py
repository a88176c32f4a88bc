"""Service abstractions for the DOI webservice."""

from .cache import DOICache
from .harvester import (
    HarvestError,
    HarvestOutcome,
    HarvestState,
    Harvester,
    MissingLocationHeader,
    RedirectLimitExceeded,
    parse_registry,
)
from .query import WildcardMatcher, compile_pattern, filter_records

__all__ = [
    "DOICache",
    "Harvester",
    "HarvestError",
    "HarvestOutcome",
    "HarvestState",
    "MissingLocationHeader",
    "RedirectLimitExceeded",
    "parse_registry",
    "WildcardMatcher",
    "compile_pattern",
    "filter_records",
]
