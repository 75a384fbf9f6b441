from .registry import StoreRegistry, liveness_status, store_endpoint
