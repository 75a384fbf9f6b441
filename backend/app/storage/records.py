from __future__ import annotations

import copy
import json
import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Literal

logger = logging.getLogger("storehub.storage")

Collection = Literal["stores", "products", "orders"]
COLLECTIONS: tuple[Collection, ...] = ("stores", "products", "orders")

Record = Dict[str, Any]


class RecordStore:
    """
    Whole-collection persistence for the hub.

    Every collection is a list of plain dict records that is always loaded and
    saved as a unit. Callers doing read-modify-write must hold lock(collection)
    for the whole cycle.
    """

    def __init__(self) -> None:
        self._locks: Dict[str, threading.Lock] = {name: threading.Lock() for name in COLLECTIONS}

    def _check(self, collection: str) -> None:
        if collection not in self._locks:
            raise ValueError(f"Unknown collection: {collection}")

    @contextmanager
    def lock(self, collection: Collection) -> Iterator[None]:
        self._check(collection)
        with self._locks[collection]:
            yield

    def bootstrap(self) -> None:
        pass

    def load(self, collection: Collection) -> List[Record]:
        raise NotImplementedError

    def save(self, collection: Collection, records: List[Record]) -> None:
        raise NotImplementedError


class MemoryRecordStore(RecordStore):
    """In-process store; hands out copies so callers never share state with it."""

    def __init__(self, initial: Dict[str, List[Record]] | None = None) -> None:
        super().__init__()
        self._data: Dict[str, List[Record]] = {name: [] for name in COLLECTIONS}
        for name, records in (initial or {}).items():
            self._check(name)
            self._data[name] = copy.deepcopy(list(records))

    def load(self, collection: Collection) -> List[Record]:
        self._check(collection)
        return copy.deepcopy(self._data[collection])

    def save(self, collection: Collection, records: List[Record]) -> None:
        self._check(collection)
        self._data[collection] = copy.deepcopy(list(records))


class JsonRecordStore(RecordStore):
    """
    One pretty-printed JSON array per collection: <data_dir>/<collection>.json.

    Writes go to a temp sibling that is then renamed over the target, so a
    reader sees either the old document or the new one.
    """

    def __init__(self, data_dir: Path) -> None:
        super().__init__()
        self.data_dir = Path(data_dir)
        self.bootstrap()
        logger.info(f"JsonRecordStore initialized, data_dir={self.data_dir}")

    def path_for(self, collection: Collection) -> Path:
        self._check(collection)
        return self.data_dir / f"{collection}.json"

    def bootstrap(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        for name in COLLECTIONS:
            p = self.path_for(name)
            if not p.exists():
                self._write(p, [])
                logger.info(f"Created empty collection file {p}")

    def load(self, collection: Collection) -> List[Record]:
        p = self.path_for(collection)
        try:
            raw = json.loads(p.read_text(encoding="utf-8"))
        except FileNotFoundError:
            logger.debug(f"Collection file missing, treating as empty: {p}")
            return []
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable collection file {p}, treating as empty: {e}")
            return []

        if not isinstance(raw, list):
            logger.warning(f"Collection file {p} does not hold a JSON array, treating as empty")
            return []

        records = [r for r in raw if isinstance(r, dict)]
        if len(records) != len(raw):
            logger.warning(f"Collection file {p} holds {len(raw) - len(records)} non-object item(s), skipping them")
        return records

    def save(self, collection: Collection, records: List[Record]) -> None:
        p = self.path_for(collection)
        logger.debug(f"Saving {len(records)} record(s) to {p}")
        self._write(p, records)

    @staticmethod
    def _write(path: Path, records: List[Record]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(records, indent=2, ensure_ascii=False), encoding="utf-8")
        tmp.replace(path)
