from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends

from ..deps import get_registry
from .models import ManualStoreRequest
from .registry import StoreRegistry

logger = logging.getLogger("storehub.registry.router")

router = APIRouter(prefix="/api", tags=["stores"])


@router.post("/stores/register")
def register_store(
    store_info: Dict[str, Any] = Body(...),
    registry: StoreRegistry = Depends(get_registry),
) -> dict:
    logger.info(f"POST /stores/register called for storeId: {store_info.get('storeId')}")
    result = registry.register(store_info)
    return {
        "success": True,
        "message": "Store registered successfully" if result.created else "Store updated successfully",
        "store": {**result.store, "connectivity": result.connectivity},
        "totalStores": result.total_stores,
    }


@router.get("/stores")
def list_stores(registry: StoreRegistry = Depends(get_registry)) -> List[dict]:
    return registry.list_stores()


@router.get("/debug/stores")
def debug_stores(registry: StoreRegistry = Depends(get_registry)) -> dict:
    return registry.debug_view()


@router.post("/stores/manual-add")
def manual_add_store(
    req: ManualStoreRequest,
    registry: StoreRegistry = Depends(get_registry),
) -> dict:
    logger.info(f"POST /stores/manual-add called for storeId: {req.storeId}")
    store = registry.manual_add(req.storeId, req.name, location=req.location, url=req.url)
    return {"success": True, "message": "Store added manually", "store": store}
