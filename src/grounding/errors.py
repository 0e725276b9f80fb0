"""Error taxonomy for ingestion, persistence and search.

Only ``ConfigurationError`` and ``PersistenceCorrupt`` ever reach callers as
raised exceptions. ``EmbeddingError`` is recorded on the ingestion report,
``SearchUnavailable`` is converted to an empty result list at the search
boundary, and a missing store file is reported with the ``PersistenceAbsent``
value rather than an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


class GroundingError(Exception):
    """Base class for all grounding retrieval errors."""


class ConfigurationError(GroundingError):
    """The corpus directory (or another required input) does not exist."""


class EmbeddingError(GroundingError):
    """A single chunk could not be embedded."""

    def __init__(self, chunk_id: int, reason: str) -> None:
        super().__init__(f"Embedding failed for chunk {chunk_id}: {reason}")
        self.chunk_id = chunk_id
        self.reason = reason


class PersistenceCorrupt(GroundingError):
    """The store file exists but cannot be decoded."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        location = f" ({path})" if path is not None else ""
        super().__init__(f"Corrupt store file{location}: {message}")
        self.path = path
        self.message = message


class SearchUnavailable(GroundingError):
    """The store is still empty after a load attempt."""


class IngestionCancelled(GroundingError):
    """Ingestion was cancelled before it completed."""

    def __init__(self, processed: int, total: int) -> None:
        super().__init__(f"Ingestion cancelled after {processed}/{total} chunks")
        self.processed = processed
        self.total = total


@dataclass(frozen=True, slots=True)
class PersistenceAbsent:
    """Marker returned when there is no store file to load."""

    path: Path

    def __str__(self) -> str:
        return f"Store file not found: {self.path}"
