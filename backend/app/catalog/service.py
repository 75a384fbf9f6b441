from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import requests

from ..errors import SyncError
from ..storage.records import Record, RecordStore
from ..stores.registry import StoreRegistry, store_endpoint

logger = logging.getLogger("storehub.catalog")

ALL = "all"


@dataclass
class SyncResult:
    store_id: str
    store_name: Optional[str]
    products_count: int


@dataclass
class SyncAllResult:
    synced_stores: int = 0
    total_products: int = 0
    failed: List[Dict[str, str]] = field(default_factory=list)


class CatalogService:
    """
    The aggregate product catalog, partitioned by storeId.

    A sync for one store swaps out that store's whole generation of products
    and leaves every other store's products untouched.
    """

    def __init__(self, records: RecordStore, registry: StoreRegistry, *, http=requests, timeout: float = 5.0):
        self.records = records
        self.registry = registry
        self.http = http
        self.timeout = timeout

    # ----------------------------
    # Syncing
    # ----------------------------

    def _fetch_products(self, store: Record) -> List[Record]:
        store_id = store.get("storeId")
        url = store_endpoint(store, "/api/products")
        if url is None:
            raise SyncError(store_id, "Store has no url")

        logger.debug(f"Fetching products for {store_id} from {url}")
        try:
            resp = self.http.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise SyncError(store_id, str(exc))

        if not 200 <= resp.status_code < 300:
            raise SyncError(store_id, f"Failed to fetch products from store (HTTP {resp.status_code})")

        try:
            body = resp.json()
        except ValueError as exc:
            raise SyncError(store_id, f"Store returned invalid JSON: {exc}")

        if not isinstance(body, list) or not all(isinstance(p, dict) for p in body):
            raise SyncError(store_id, "Store returned an unexpected products payload (expected a list of objects)")

        # ownership is stamped so the next sync can find this generation
        return [{**p, "storeId": store_id} for p in body]

    def _replace_generation(self, store_id: str, products: List[Record]) -> None:
        with self.records.lock("products"):
            catalog = self.records.load("products")
            kept = [p for p in catalog if p.get("storeId") != store_id]
            self.records.save("products", kept + products)
            logger.debug(f"Replaced {len(catalog) - len(kept)} product(s) of {store_id} with {len(products)}")

    def _sync_store(self, store: Record) -> SyncResult:
        products = self._fetch_products(store)
        self._replace_generation(store["storeId"], products)
        return SyncResult(store_id=store["storeId"], store_name=store.get("name"), products_count=len(products))

    def sync_one(self, store_id: str) -> SyncResult:
        store = self.registry.get(store_id)
        try:
            result = self._sync_store(store)
        except SyncError as exc:
            logger.error(f"Failed to sync store {store_id}: {exc.reason}")
            raise
        logger.info(f"Synced {result.products_count} product(s) from {store_id}")
        return result

    def sync_all(self) -> SyncAllResult:
        """
        Sync every store the registry currently sees as online. One failing
        store is logged and skipped; the rest still sync.
        """
        outcome = SyncAllResult()
        stores = self.registry.online_stores()
        logger.info(f"Syncing products from {len(stores)} online store(s)")

        for store in stores:
            store_id = store.get("storeId")
            try:
                result = self._sync_store(store)
            except Exception as exc:
                reason = exc.reason if isinstance(exc, SyncError) else str(exc)
                logger.error(f"Failed to sync store {store.get('name') or store_id}: {reason}")
                outcome.failed.append({"storeId": store_id, "error": reason})
                continue

            outcome.synced_stores += 1
            outcome.total_products += result.products_count

        logger.info(
            f"Sync-all finished: {outcome.synced_stores} store(s), "
            f"{outcome.total_products} product(s), {len(outcome.failed)} failure(s)"
        )
        return outcome

    # ----------------------------
    # Views
    # ----------------------------

    def list_products(
        self,
        store_id: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Record]:
        products = self.records.load("products")

        if store_id:
            products = [p for p in products if p.get("storeId") == store_id]

        if category and category != ALL:
            products = [p for p in products if p.get("category") == category]

        if search:
            term = search.lower()
            products = [p for p in products if term in _text(p, "name") or term in _text(p, "category")]

        return products

    def categories(self) -> List[str]:
        seen: Dict[str, None] = {}
        for p in self.records.load("products"):
            category = p.get("category")
            if category:
                seen.setdefault(category, None)
        return list(seen)


def _text(product: Record, key: str) -> str:
    value = product.get(key)
    return str(value).lower() if value is not None else ""


# ----------------------------
# Periodic refresh
# ----------------------------

async def _catalog_refresh_loop(catalog: CatalogService, interval_seconds: int) -> None:
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await asyncio.to_thread(catalog.sync_all)
        except Exception:
            logger.exception("Periodic catalog sync failed")


def start_catalog_refresh_task(app, catalog: CatalogService, interval_seconds: int) -> None:
    task = asyncio.create_task(_catalog_refresh_loop(catalog, interval_seconds))
    app.state.catalog_refresh_task = task
    logger.info(f"Started catalog refresh task, interval={interval_seconds}s")


async def stop_catalog_refresh_task(app) -> None:
    task = getattr(app.state, "catalog_refresh_task", None)
    if task is None:
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        return
    finally:
        app.state.catalog_refresh_task = None
