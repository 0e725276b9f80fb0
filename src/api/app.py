"""FastAPI query surface for grounding retrieval.

Search never fails because of the embedding backend or the store; the worst
answer is an empty result list. Ingestion is deliberately not exposed here,
it is an operator action (see ``src.grounding.cli``).
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from src.grounding.config import GroundingConfig
from src.grounding.errors import PersistenceCorrupt
from src.grounding.service import GroundingService

VERSION = "0.1.0"


# --- Request/Response Models ---


class SearchRequest(BaseModel):
    """Request body for a search."""

    query: str = Field(..., min_length=1, description="Query text")
    top_k: Optional[int] = Field(default=None, ge=1, le=100, description="Number of results")
    threshold: Optional[float] = Field(
        default=None, ge=-1.0, le=1.0, description="Minimum cosine similarity"
    )


class SearchHit(BaseModel):
    """A single ranked passage."""

    rank: int
    score: float
    id: int
    content: str


class SearchResponse(BaseModel):
    """Response from a search."""

    query: str
    results: list[SearchHit]


class LoadResponse(BaseModel):
    """Response from reloading the store file."""

    chunk_count: int
    store_path: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    mode: str
    index_backend: str
    chunk_count: int
    version: str = VERSION


# --- Application ---


def create_app(
    config: Optional[GroundingConfig] = None,
    service: Optional[GroundingService] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Optional GroundingConfig. Defaults to environment-based config.
        service: Optional pre-built service (tests inject one with a fixed provider).
    """
    app = FastAPI(
        title="Grounding Retrieval",
        description="Top-K cosine similarity search over an embedded text corpus",
        version=VERSION,
    )
    app.state.service = service or GroundingService(config)

    def get_service(request: Request) -> GroundingService:
        return request.app.state.service

    @app.get("/health", response_model=HealthResponse)
    async def health(request: Request) -> HealthResponse:
        """Health check endpoint."""
        svc = get_service(request)
        return HealthResponse(
            status="healthy",
            mode=svc.config.mode.value,
            index_backend=svc.config.index_backend.value,
            chunk_count=svc.chunk_count,
        )

    @app.post("/search", response_model=SearchResponse)
    def search(body: SearchRequest, request: Request) -> SearchResponse:
        """Rank stored passages against the query."""
        hits = get_service(request).search_scored(
            body.query, top_k=body.top_k, threshold=body.threshold
        )
        return SearchResponse(
            query=body.query,
            results=[
                SearchHit(rank=h.rank, score=h.score, id=h.chunk.id, content=h.content)
                for h in hits
            ],
        )

    @app.post("/load", response_model=LoadResponse)
    def load(request: Request) -> LoadResponse:
        """Reload the store file from disk."""
        svc = get_service(request)
        try:
            result = svc.load()
        except PersistenceCorrupt as e:
            raise HTTPException(status_code=500, detail=str(e))
        if result.is_err():
            raise HTTPException(status_code=404, detail=str(result.error))  # type: ignore[union-attr]
        return LoadResponse(chunk_count=result.unwrap(), store_path=str(svc.store_path))

    return app


# Default app instance for uvicorn
app = create_app()
