from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import requests

from ..clock import Clock, parse_iso, to_iso, utcnow
from ..errors import NotFoundError, ValidationError, require_fields
from ..storage.records import Record, RecordStore
from .models import (
    DEFAULT_LOCATION,
    OFFLINE,
    ONLINE,
    Connectivity,
    RegistrationResult,
    StoreStatus,
)

logger = logging.getLogger("storehub.registry")

DEFAULT_LIVENESS = timedelta(minutes=10)


def liveness_status(last_seen: Any, now: datetime, threshold: timedelta) -> StoreStatus:
    """
    Online while the gap since the last heartbeat is strictly below the
    threshold. A missing or malformed lastSeen is offline.
    """
    seen = parse_iso(last_seen)
    if seen is None:
        return OFFLINE
    return ONLINE if now - seen < threshold else OFFLINE


def store_endpoint(store: Record, path: str) -> Optional[str]:
    """Absolute URL of `path` on a store server, or None if the store has no url."""
    base = store.get("url")
    if not isinstance(base, str) or not base.strip():
        return None
    return f"{base.strip().rstrip('/')}{path}"


class StoreRegistry:
    """
    Directory of store servers kept in the `stores` collection.

    register() merges into an existing record (stores report incrementally),
    manual_add() replaces it (operators correct wholesale).
    """

    def __init__(
        self,
        records: RecordStore,
        *,
        liveness: timedelta = DEFAULT_LIVENESS,
        http=requests,
        timeout: float = 5.0,
        clock: Clock = utcnow,
    ):
        self.records = records
        self.liveness = liveness
        self.http = http
        self.timeout = timeout
        self.clock = clock

    # ----------------------------
    # Registration
    # ----------------------------

    def register(self, store_info: Dict[str, Any], *, test_connectivity: bool = True) -> RegistrationResult:
        if not isinstance(store_info, dict):
            raise ValidationError("Store registration must be a JSON object")
        require_fields(store_info, "storeId", "name", "url")

        store_id = str(store_info["storeId"])
        now = to_iso(self.clock())

        incoming = dict(store_info)
        incoming["storeId"] = store_id
        incoming["lastSeen"] = now
        incoming["status"] = ONLINE
        incoming.pop("registeredAt", None)

        logger.info(f"Store registration received: storeId={store_id} name={incoming.get('name')} url={incoming.get('url')}")

        with self.records.lock("stores"):
            stores = self.records.load("stores")
            index = _index_of(stores, store_id)

            if index is None:
                incoming["registeredAt"] = now
                merged = incoming
                stores.append(merged)
                created = True
                logger.info(f"Added new store: {store_id}")
            else:
                previous = stores[index]
                merged = {**previous, **incoming}
                merged["registeredAt"] = previous.get("registeredAt") or now
                stores[index] = merged
                created = False
                logger.info(f"Updated existing store: {store_id}")

            self.records.save("stores", stores)
            total = len(stores)

        result = RegistrationResult(store=dict(merged), total_stores=total, created=created)
        if test_connectivity:
            result.connectivity = self.connectivity_of(merged)
        return result

    def connectivity_of(self, store: Record) -> Connectivity:
        """
        GET <url>/api/debug on the store. Reports the outcome; never raises.
        """
        url = store_endpoint(store, "/api/debug")
        if url is None:
            return "failed"
        try:
            resp = self.http.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning(f"Store connectivity test error for {store.get('storeId')}: {exc}")
            return "failed"

        if 200 <= resp.status_code < 300:
            logger.info(f"Store connectivity test passed for {store.get('storeId')}")
            return "good"

        logger.warning(f"Store connectivity test failed for {store.get('storeId')}: HTTP {resp.status_code}")
        return "poor"

    def manual_add(
        self,
        store_id: Optional[str],
        name: Optional[str],
        location: Optional[str] = None,
        url: Optional[str] = None,
    ) -> Record:
        require_fields({"storeId": store_id, "name": name}, "storeId", "name")

        now = to_iso(self.clock())
        store: Record = {
            "storeId": str(store_id),
            "name": name,
            "location": location or DEFAULT_LOCATION,
            "url": url,
            "lastSeen": now,
            "registeredAt": now,
            "status": ONLINE,
        }

        with self.records.lock("stores"):
            stores = self.records.load("stores")
            index = _index_of(stores, store["storeId"])
            if index is None:
                stores.append(store)
            else:
                stores[index] = store
            self.records.save("stores", stores)

        logger.info(f"Store added manually: storeId={store['storeId']} replaced={index is not None}")
        return dict(store)

    # ----------------------------
    # Views
    # ----------------------------

    def list_stores(self) -> List[Record]:
        """
        All stores with status recomputed from lastSeen. The recomputed
        statuses are written back.
        """
        with self.records.lock("stores"):
            stores = self.records.load("stores")
            now = self.clock()
            for store in stores:
                store["status"] = liveness_status(store.get("lastSeen"), now, self.liveness)
            self.records.save("stores", stores)
        return stores

    def online_stores(self) -> List[Record]:
        return [s for s in self.list_stores() if s.get("status") == ONLINE]

    def debug_view(self) -> Dict[str, Any]:
        now = self.clock()
        stores = []
        for store in self.records.load("stores"):
            seen = parse_iso(store.get("lastSeen"))
            minutes = None
            if seen is not None:
                minutes = math.floor((now - seen).total_seconds() / 60)
            stores.append(
                {
                    **store,
                    "status": liveness_status(store.get("lastSeen"), now, self.liveness),
                    "minutesSinceLastSeen": minutes,
                }
            )

        return {
            "totalStores": len(stores),
            "onlineStores": sum(1 for s in stores if s["status"] == ONLINE),
            "livenessMinutes": self.liveness.total_seconds() / 60,
            "stores": stores,
        }

    def find_by_id(self, store_id: str) -> Optional[Record]:
        for store in self.records.load("stores"):
            if store.get("storeId") == store_id:
                return store
        return None

    def get(self, store_id: str) -> Record:
        store = self.find_by_id(store_id)
        if store is None:
            raise NotFoundError("Store not found", details=f"No store registered with storeId {store_id!r}")
        return store


def _index_of(stores: List[Record], store_id: str) -> Optional[int]:
    for i, s in enumerate(stores):
        if s.get("storeId") == store_id:
            return i
    return None
