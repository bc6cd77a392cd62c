"""
Advice Router
==============
Filters and ranks advice items for a lead.
"""

import logging
from fastapi import APIRouter, Depends

from api.routers.catalog import get_cache, resolve_catalog
from models.schemas import AdviceRankRequest, AdviceRankResponse, RankedAdviceResponse
from services.advice_matcher import filter_and_rank_advice

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/advice", tags=["advice"])


@router.post("/rank", response_model=AdviceRankResponse)
async def rank_advice(request: AdviceRankRequest, cache=Depends(get_cache)):
    """Applicable advice for the lead, highest match score first."""
    catalog = resolve_catalog(request, cache)
    ranked = filter_and_rank_advice(
        request.advice, request.flow, request.answers, catalog, request.min_match_score,
    )
    logger.info(f"Ranked advice for flow '{request.flow}': {len(ranked)}/{len(request.advice)} applicable")
    return AdviceRankResponse(
        flow=request.flow,
        results=[
            RankedAdviceResponse(
                id=r.advice.id,
                title=r.advice.title,
                match_score=r.match_score,
                reason=r.reason,
            )
            for r in ranked
        ],
    )
