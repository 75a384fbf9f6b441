from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel
from pydantic.config import ConfigDict

StoreStatus = Literal["online", "offline"]
Connectivity = Literal["good", "poor", "failed", "skipped"]

ONLINE: StoreStatus = "online"
OFFLINE: StoreStatus = "offline"

DEFAULT_LOCATION = "Unknown Location"


class ManualStoreRequest(BaseModel):
    """
    Operator-supplied store. Only these four fields are kept; anything else in
    the body is dropped because a manual add replaces the record wholesale.
    """
    model_config = ConfigDict(extra="ignore")

    storeId: Optional[str] = None
    name: Optional[str] = None
    location: Optional[str] = None
    url: Optional[str] = None


@dataclass
class RegistrationResult:
    store: Dict[str, Any]
    total_stores: int
    created: bool
    connectivity: Connectivity = "skipped"
