from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ..deps import get_catalog
from .service import CatalogService

logger = logging.getLogger("storehub.catalog.router")

router = APIRouter(prefix="/api", tags=["catalog"])


@router.post("/stores/sync-all")
def sync_all_stores(svc: CatalogService = Depends(get_catalog)) -> dict:
    logger.info("POST /stores/sync-all called")
    result = svc.sync_all()
    return {
        "success": True,
        "syncedStores": result.synced_stores,
        "totalProducts": result.total_products,
        "failedStores": result.failed,
        "message": f"Synced {result.synced_stores} store(s) with {result.total_products} product(s)",
    }


@router.post("/stores/{store_id}/sync-products")
def sync_store_products(store_id: str, svc: CatalogService = Depends(get_catalog)) -> dict:
    logger.info(f"POST /stores/{store_id}/sync-products called")
    result = svc.sync_one(store_id)
    return {
        "success": True,
        "productsCount": result.products_count,
        "store": result.store_name,
    }


@router.get("/products")
def list_products(
    storeId: Optional[str] = Query(default=None),
    category: Optional[str] = Query(default=None, description="Exact category, or 'all'"),
    search: Optional[str] = Query(default=None, description="Matches name or category"),
    svc: CatalogService = Depends(get_catalog),
) -> List[dict]:
    return svc.list_products(store_id=storeId, category=category, search=search)


@router.get("/categories")
def list_categories(svc: CatalogService = Depends(get_catalog)) -> List[str]:
    return svc.categories()
