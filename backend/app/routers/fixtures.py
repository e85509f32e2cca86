"""Fixture resolution API: resolve a match description and enrich parsed slip selections."""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from app.models.fixtures import EnrichedSelection, RawSelection, ResolutionResult
from app.services.fixture_resolution_service import fixture_resolution_service
from app.services.selection_enrichment_service import enrich_selections

router = APIRouter(prefix="/api", tags=["fixtures"])


class EnrichSelectionsRequest(BaseModel):
    tipster_id: str = ""
    sport: Optional[str] = None
    selections: List[RawSelection] = Field(min_length=1)


@router.get("/fixtures/resolve", response_model=ResolutionResult)
async def resolve_fixture(
    match: str = Query("", description='Match text as printed on the slip, e.g. "J. Sinner vs F. Cerúndolo"'),
    sport: Optional[str] = Query(None, description="Sport hint (tennis, football, basketball)"),
):
    """Resolve tournament and UTC kickoff. Null fields mean "not found", not an error."""
    if not match.strip():
        raise HTTPException(status_code=400, detail="missing match")
    return await fixture_resolution_service.resolve_fixture(match, sport)


@router.post("/selections/enrich", response_model=List[EnrichedSelection])
async def enrich_parsed_selections(body: EnrichSelectionsRequest):
    """Fill blank tournament/kickoff fields of parsed selections where they can be resolved."""
    return await enrich_selections(
        body.selections,
        tipster_id=body.tipster_id,
        resolver=fixture_resolution_service,
        sport_hint=body.sport,
    )
