from __future__ import annotations

from typing import Optional

from pydantic import BaseModel
from pydantic.config import ConfigDict

PENDING = "pending"
ORDER_ID_PREFIX = "MAIN-ORD-"


class StatusUpdateRequest(BaseModel):
    # store dashboards also send storeId; it is not used
    model_config = ConfigDict(extra="ignore")

    status: Optional[str] = None
    notes: Optional[str] = None
