"""
Health Router
==============
Health check and cache statistics endpoints.
"""

import logging
from datetime import datetime
from fastapi import APIRouter

from config.settings import settings
from models.schemas import HealthCheckResponse
from rules.dictionaries.concepts import get_concept_registry
from services.cache import get_catalog_cache

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthCheckResponse)
async def health_check():
    """Health check endpoint."""
    return HealthCheckResponse(
        status="healthy",
        version=settings.app_version,
        concepts_loaded=len(get_concept_registry()),
        cache_enabled=get_catalog_cache().enabled,
        timestamp=datetime.now(),
    )


@router.get("/api/cache/stats")
async def cache_stats():
    """Catalog cache statistics."""
    return get_catalog_cache().stats
