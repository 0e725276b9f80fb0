"""Grounding core - configuration, chunk model, errors and result type."""

from src.grounding.chunk import Chunk, ScoredChunk
from src.grounding.config import GroundingConfig, MockConfig, RunMode
from src.grounding.result import Err, Ok, Result

__all__ = ["Chunk", "ScoredChunk", "GroundingConfig", "MockConfig", "RunMode", "Result", "Ok", "Err"]
