from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Query

from ..deps import get_config, get_orders
from ..config import HubConfig
from .models import StatusUpdateRequest
from .service import OrderService

logger = logging.getLogger("storehub.orders.router")

router = APIRouter(prefix="/api", tags=["orders"])


@router.post("/orders", status_code=201)
def create_order(
    background: BackgroundTasks,
    order: Dict[str, Any] = Body(...),
    svc: OrderService = Depends(get_orders),
    config: HubConfig = Depends(get_config),
) -> dict:
    logger.info(f"POST /orders called for storeId: {order.get('storeId')}")
    created, store = svc.create(order)

    # runs after the response is sent; outcome is only logged
    if config.forward_orders:
        background.add_task(svc.forward, created, store)

    return {"success": True, "order": created}


@router.put("/orders/{order_id}/status")
def update_order_status(
    order_id: str,
    req: StatusUpdateRequest,
    svc: OrderService = Depends(get_orders),
) -> dict:
    logger.info(f"PUT /orders/{order_id}/status called with status: {req.status}")
    order = svc.update_status(order_id, req.status, notes=req.notes)
    return {"success": True, "order": order}


@router.get("/orders")
def list_orders(
    storeId: Optional[str] = Query(default=None),
    status: Optional[str] = Query(default=None, description="Exact status, or 'all'"),
    svc: OrderService = Depends(get_orders),
) -> List[dict]:
    return svc.list_orders(store_id=storeId, status=status)
