from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import requests

from ..clock import Clock, parse_iso, to_iso, utcnow
from ..errors import NotFoundError, ValidationError, require_present
from ..storage.records import Record, RecordStore
from ..stores.registry import StoreRegistry, store_endpoint
from .models import ORDER_ID_PREFIX, PENDING

logger = logging.getLogger("storehub.orders")

ALL = "all"
_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


class OrderService:
    """
    Central order book. The `orders` collection is the source of truth;
    pushing an order to its store is best-effort.
    """

    def __init__(
        self,
        records: RecordStore,
        registry: StoreRegistry,
        *,
        http=requests,
        timeout: float = 5.0,
        clock: Clock = utcnow,
    ):
        self.records = records
        self.registry = registry
        self.http = http
        self.timeout = timeout
        self.clock = clock

    def _new_order_id(self, now: datetime, orders: List[Record]) -> str:
        taken = {o.get("orderId") for o in orders}
        millis = int(now.timestamp() * 1000)
        while f"{ORDER_ID_PREFIX}{millis}" in taken:
            millis += 1
        return f"{ORDER_ID_PREFIX}{millis}"

    def create(self, order: Dict[str, Any]) -> Tuple[Record, Record]:
        """
        Validate, enrich and persist a new order. Returns (order, store) so the
        caller can forward it.
        """
        if not isinstance(order, dict):
            raise ValidationError("Order must be a JSON object")
        require_present(order, "storeId", "items", "customer")

        # registration stores ids as strings
        store_id = str(order["storeId"])
        store = self.registry.get(store_id)
        now = self.clock()

        with self.records.lock("orders"):
            orders = self.records.load("orders")
            created = {
                **order,
                "storeId": store_id,
                "orderId": self._new_order_id(now, orders),
                "createdAt": to_iso(now),
                "status": PENDING,
                "storeName": store.get("name"),
            }
            orders.append(created)
            self.records.save("orders", orders)

        logger.info(f"Order {created['orderId']} created for store {created['storeId']}")
        return dict(created), store

    def forward(self, order: Record, store: Record) -> bool:
        """
        POST the order to <store url>/api/orders. Logs the outcome and never
        raises; returns whether the store accepted it.
        """
        order_id = order.get("orderId")
        url = store_endpoint(store, "/api/orders")
        if url is None:
            logger.warning(f"Not forwarding order {order_id}: store {store.get('storeId')} has no url")
            return False

        try:
            resp = self.http.post(url, json=order, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error(f"Failed to send order {order_id} to store {store.get('storeId')}: {exc}")
            return False

        if not 200 <= resp.status_code < 300:
            logger.error(f"Store {store.get('storeId')} rejected order {order_id}: HTTP {resp.status_code}")
            return False

        logger.info(f"Order {order_id} delivered to store {store.get('storeId')}")
        return True

    def update_status(self, order_id: str, status: Optional[str], notes: Optional[str] = None) -> Record:
        if status is None or status == "":
            raise ValidationError("Missing required fields", details="status is required")

        with self.records.lock("orders"):
            orders = self.records.load("orders")
            for order in orders:
                if order.get("orderId") == order_id:
                    break
            else:
                raise NotFoundError("Order not found", details=f"No order with orderId {order_id!r}")

            order["status"] = status
            if notes:
                order["notes"] = notes
            order["updatedAt"] = to_iso(self.clock())
            self.records.save("orders", orders)

        logger.info(f"Order {order_id} status set to {status!r}")
        return dict(order)

    def list_orders(self, store_id: Optional[str] = None, status: Optional[str] = None) -> List[Record]:
        orders = self.records.load("orders")

        if store_id:
            orders = [o for o in orders if o.get("storeId") == store_id]

        if status and status != ALL:
            orders = [o for o in orders if o.get("status") == status]

        orders.sort(key=lambda o: parse_iso(o.get("createdAt")) or _OLDEST, reverse=True)
        return orders
