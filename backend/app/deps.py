from __future__ import annotations

from datetime import timedelta
from typing import Optional

import requests
from fastapi import Depends

from .catalog.service import CatalogService
from .clock import Clock, utcnow
from .config import HubConfig, load_config
from .orders.service import OrderService
from .storage.records import JsonRecordStore, RecordStore
from .stores.registry import StoreRegistry

# ----------------------------
# Singletons (simple + safe)
# ----------------------------

_config: Optional[HubConfig] = None
_records: Optional[RecordStore] = None


def get_config() -> HubConfig:
    global _config
    if _config is None:
        _config = load_config()
    return _config


def get_record_store() -> RecordStore:
    global _records
    if _records is None:
        _records = JsonRecordStore(get_config().data_dir)
    return _records


def get_http():
    """Outbound HTTP client used to talk to store servers."""
    return requests


def get_clock() -> Clock:
    return utcnow


# ----------------------------
# Per-request services
# ----------------------------

def get_registry(
    records: RecordStore = Depends(get_record_store),
    config: HubConfig = Depends(get_config),
    http=Depends(get_http),
    clock: Clock = Depends(get_clock),
) -> StoreRegistry:
    return StoreRegistry(
        records,
        liveness=timedelta(minutes=config.liveness_minutes),
        http=http,
        timeout=config.http_timeout,
        clock=clock,
    )


def get_catalog(
    records: RecordStore = Depends(get_record_store),
    registry: StoreRegistry = Depends(get_registry),
    config: HubConfig = Depends(get_config),
    http=Depends(get_http),
) -> CatalogService:
    return CatalogService(records, registry, http=http, timeout=config.http_timeout)


def get_orders(
    records: RecordStore = Depends(get_record_store),
    registry: StoreRegistry = Depends(get_registry),
    config: HubConfig = Depends(get_config),
    http=Depends(get_http),
    clock: Clock = Depends(get_clock),
) -> OrderService:
    return OrderService(records, registry, http=http, timeout=config.http_timeout, clock=clock)
