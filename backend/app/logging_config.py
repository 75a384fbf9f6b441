import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

FORMAT = (
    "%(asctime)s | %(levelname)-7s | %(name)s | "
    "%(filename)s:%(lineno)d | %(funcName)s() | %(message)s"
)
formatter = logging.Formatter(FORMAT)


def _file_handler(path: Path, level=logging.INFO) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path,
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=5,
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _attach(logger: logging.Logger, handler: logging.Handler) -> None:
    for h in logger.handlers:
        if getattr(h, "baseFilename", None) == getattr(handler, "baseFilename", None):
            return
    logger.addHandler(handler)


def _route(names, handler: logging.Handler) -> None:
    for name in names:
        lg = logging.getLogger(name)
        _attach(lg, handler)
        lg.propagate = False


def setup_logging(log_dir: Path = Path("logs")) -> None:
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # --- Core (app, storage, anything not routed below) ---
    _route(("backend.app", "storehub"), _file_handler(log_dir / "core.log"))

    # --- Registry ---
    _route(("storehub.registry",), _file_handler(log_dir / "registry.log"))

    # --- Catalog (sync traffic is the noisy part, keep debug) ---
    _route(("storehub.catalog",), _file_handler(log_dir / "catalog.log", level=logging.DEBUG))

    # --- Orders ---
    _route(("storehub.orders",), _file_handler(log_dir / "orders.log"))

    # --- Uvicorn ---
    _route(("uvicorn", "uvicorn.error", "uvicorn.access"), _file_handler(log_dir / "uvicorn.log"))
