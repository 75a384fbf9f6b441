from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


class HubConfig(BaseModel):
    """
    Runtime settings for the hub. Built from the environment by load_config().
    """

    data_dir: Path = Path("data")
    log_dir: Path = Path("logs")

    # a store is "online" while now - lastSeen is strictly below this
    liveness_minutes: float = Field(default=10, gt=0)

    # bound for every outbound call to a store server
    http_timeout: float = Field(default=5.0, gt=0)

    forward_orders: bool = True

    # 0 disables the periodic sync-all task
    sync_interval_seconds: int = Field(default=0, ge=0)

    host: str = "0.0.0.0"
    port: int = 5000


_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _env_number(name: str, default, cast):
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


def load_config() -> HubConfig:
    defaults = HubConfig()
    return HubConfig(
        data_dir=Path(os.environ.get("STOREHUB_DATA_DIR") or defaults.data_dir),
        log_dir=Path(os.environ.get("STOREHUB_LOG_DIR") or defaults.log_dir),
        liveness_minutes=_env_number("STOREHUB_LIVENESS_MINUTES", defaults.liveness_minutes, float),
        http_timeout=_env_number("STOREHUB_HTTP_TIMEOUT", defaults.http_timeout, float),
        forward_orders=_env_bool("STOREHUB_FORWARD_ORDERS", defaults.forward_orders),
        sync_interval_seconds=_env_number("STOREHUB_SYNC_INTERVAL", defaults.sync_interval_seconds, int),
        host=os.environ.get("HOST") or defaults.host,
        port=_env_number("PORT", defaults.port, int),
    )
