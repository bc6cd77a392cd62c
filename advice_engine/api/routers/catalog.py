"""
Catalog Router
===============
Field discovery from flow definitions and per-tenant catalog caching.
"""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException

from models.flows import KnownField
from models.schemas import CatalogRequest, CatalogResponse, CatalogSource, FieldResponse
from services.cache import CatalogCache, get_catalog_cache
from services.field_catalog import build_catalog, custom_fields, group_by_concept

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["catalog"])


def get_cache():
    return get_catalog_cache()


def resolve_catalog(source: CatalogSource, cache: CatalogCache) -> List[KnownField]:
    """Inline flows win over a cached tenant catalog."""
    if source.flows is not None:
        return build_catalog(source.flows)
    catalog = cache.get(source.tenant_id)
    if catalog is None:
        raise HTTPException(status_code=404, detail=f"No catalog cached for tenant: {source.tenant_id}")
    return catalog


def _catalog_response(catalog: List[KnownField], tenant_id: Optional[str] = None) -> CatalogResponse:
    return CatalogResponse(
        tenant_id=tenant_id,
        fields=[FieldResponse.from_field(f) for f in catalog],
        custom_field_ids=[f.field_id for f in custom_fields(catalog)],
        concepts={
            concept_id: [f.field_id for f in fields]
            for concept_id, fields in group_by_concept(catalog).items()
        },
    )


@router.post("/catalog", response_model=CatalogResponse)
async def discover_fields(request: CatalogRequest):
    """Build a field catalog from inline flow definitions."""
    catalog = build_catalog(request.flows, policy=request.collision_policy)
    return _catalog_response(catalog)


@router.put("/tenants/{tenant_id}/catalog", response_model=CatalogResponse)
async def store_tenant_catalog(tenant_id: str, request: CatalogRequest, cache=Depends(get_cache)):
    """Rebuild and cache a tenant's catalog after its flows changed."""
    if not cache.enabled:
        raise HTTPException(
            status_code=503,
            detail="Catalog cache is disabled; send flows inline instead of storing a tenant catalog",
        )
    cache.invalidate(tenant_id)
    catalog = build_catalog(request.flows, policy=request.collision_policy)
    cache.put(tenant_id, catalog)
    return _catalog_response(catalog, tenant_id)


@router.get("/tenants/{tenant_id}/catalog", response_model=CatalogResponse)
async def get_tenant_catalog(tenant_id: str, cache=Depends(get_cache)):
    """Return a tenant's cached catalog."""
    catalog = cache.get(tenant_id)
    if catalog is None:
        raise HTTPException(status_code=404, detail=f"No catalog cached for tenant: {tenant_id}")
    return _catalog_response(catalog, tenant_id)


@router.delete("/tenants/{tenant_id}/catalog")
async def invalidate_tenant_catalog(tenant_id: str, cache=Depends(get_cache)):
    """Drop a tenant's cached catalog."""
    return {"tenant_id": tenant_id, "invalidated": cache.invalidate(tenant_id)}
