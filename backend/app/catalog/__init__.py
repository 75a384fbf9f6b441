from .service import CatalogService, SyncAllResult, SyncResult
