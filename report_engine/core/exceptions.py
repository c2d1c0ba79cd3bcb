"""
Error taxonomy for the report engine.

Only whole-fetch failures propagate out of the engine. Per-field and
per-record problems (malformed JSON columns, reports without a matching
raw text) are absorbed by the components that meet them and never show
up here.
"""

from typing import Optional


class ReportEngineError(Exception):
    """Base class for errors surfaced to the presentation layer."""


class UpstreamFetchFailure(ReportEngineError):
    """
    A query against the record store failed, or the store is unconfigured.

    The message is meant for direct display next to a retry affordance;
    the engine itself never retries.

    Attributes:
        message: Human-readable description of the failure.
        source: Name of the collection whose fetch failed, when known.
    """

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.source = source

    def __str__(self) -> str:
        return self.message
