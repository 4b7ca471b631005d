from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel, Field

from src.catalog.errors import QueryError
from src.search import CatalogService
from src.scheduler import RefreshScheduler


router = APIRouter(prefix="/search", tags=["search"])

NOT_UNDERSTOOD = "couldn't understand that"
NOT_FOUND = "i couldn't find that nub :("


class SearchResultItem(BaseModel):
    source: str = Field(..., description="Locator of the matched item, verbatim.")
    tags: str = Field(..., description="The item's tags joined into one string.")
    score: float = Field(..., description="Relevance score, higher is better.")


class ChoiceItem(BaseModel):
    name: str = Field(..., description="Display text for the choice.")
    value: str = Field(..., description="Value to send back when the choice is picked.")


class ResolveResponse(BaseModel):
    source: str = Field(..., description="Locator the value resolved to.")


class StatusResponse(BaseModel):
    state: str = Field(..., description="Current refresh scheduler state.")
    documents: int = Field(..., description="Documents in the committed index.")
    generation: int = Field(..., description="Number of committed rebuilds.")
    last_success: Optional[datetime] = Field(
        None, description="When the last seed or refresh committed (UTC)."
    )
    consecutive_failures: int = Field(0, description="Failed refreshes since the last success.")


def _get_service(request: Request) -> CatalogService:
    return request.app.state.catalog


def _get_scheduler(request: Request) -> RefreshScheduler:
    return request.app.state.scheduler


@router.get(
    "",
    summary="Keyword search over the catalog",
    response_model=List[SearchResultItem],
)
async def search(
    request: Request,
    q: str = Query(..., description="Free-text query or an exact source."),
) -> List[SearchResultItem]:
    try:
        hits = await _get_service(request).search(q)
    except QueryError as exc:
        raise HTTPException(status_code=400, detail=NOT_UNDERSTOOD) from exc

    return [SearchResultItem(source=h.source, tags=h.tags, score=h.score) for h in hits]


@router.get(
    "/autocomplete",
    summary="Autocomplete choices for a partially typed query",
    response_model=List[ChoiceItem],
)
async def autocomplete(
    request: Request,
    q: str = Query("", description="What the user has typed so far."),
) -> List[ChoiceItem]:
    try:
        choices = await _get_service(request).autocomplete(q)
    except QueryError as exc:
        raise HTTPException(status_code=400, detail=NOT_UNDERSTOOD) from exc

    return [ChoiceItem(name=c.name, value=c.value) for c in choices]


@router.get(
    "/resolve",
    summary="Resolve a picked choice or free text to one source",
    response_model=ResolveResponse,
)
async def resolve(
    request: Request,
    q: str = Query(..., min_length=1, description="A choice value or free text."),
) -> ResolveResponse:
    try:
        source = await _get_service(request).resolve(q)
    except QueryError as exc:
        raise HTTPException(status_code=400, detail=NOT_UNDERSTOOD) from exc

    if source is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return ResolveResponse(source=source)


@router.get("/status", summary="Index and refresh status", response_model=StatusResponse)
async def status(request: Request) -> StatusResponse:
    service = _get_service(request)
    scheduler = _get_scheduler(request)
    return StatusResponse(
        state=scheduler.state.value,
        documents=service.index.num_docs,
        generation=service.index.generation,
        last_success=scheduler.last_success,
        consecutive_failures=scheduler.consecutive_failures,
    )
