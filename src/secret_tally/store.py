"""Persistence for election keys, tally records and results.

Two stores share one interface:
- MemoryStore keeps everything in process memory (tests, single-run demos)
- JsonFileStore keeps one JSON document on disk, rewritten atomically
  through a temporary file and ``os.replace``

Big integers are stored as decimal strings. Records handed out are copies,
so callers mutate them freely and persist with ``put_tally``.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import AlreadyExists
from .models import Result, TallyRecord
from .secrecy import ElectionKey

logger = logging.getLogger(__name__)


class ElectionStore(ABC):
    """Storage interface used by the tallying components."""

    @abstractmethod
    def add_key(self, key: ElectionKey) -> None:
        """Insert ``key``; raise AlreadyExists if the election has one."""
        raise NotImplementedError

    @abstractmethod
    def get_key(self, election_id: str) -> Optional[ElectionKey]:
        raise NotImplementedError

    @abstractmethod
    def get_tally(self, election_id: str) -> Optional[TallyRecord]:
        raise NotImplementedError

    @abstractmethod
    def put_tally(self, record: TallyRecord) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_result(self, election_id: str) -> Optional[Result]:
        raise NotImplementedError

    @abstractmethod
    def put_result(self, result: Result) -> None:
        raise NotImplementedError


class MemoryStore(ElectionStore):
    def __init__(self):
        self._lock = threading.Lock()
        self._keys: Dict[str, ElectionKey] = {}
        self._tallies: Dict[str, TallyRecord] = {}
        self._results: Dict[str, Result] = {}

    def add_key(self, key: ElectionKey) -> None:
        with self._lock:
            if key.election_id in self._keys:
                raise AlreadyExists(f"election {key.election_id} already has a key")
            self._keys[key.election_id] = key

    def get_key(self, election_id: str) -> Optional[ElectionKey]:
        with self._lock:
            return self._keys.get(election_id)

    def get_tally(self, election_id: str) -> Optional[TallyRecord]:
        with self._lock:
            record = self._tallies.get(election_id)
            return record.copy() if record is not None else None

    def put_tally(self, record: TallyRecord) -> None:
        with self._lock:
            self._tallies[record.election_id] = record.copy()

    def get_result(self, election_id: str) -> Optional[Result]:
        with self._lock:
            return self._results.get(election_id)

    def put_result(self, result: Result) -> None:
        with self._lock:
            self._results[result.election_id] = result


def _empty_document() -> Dict[str, Any]:
    return {"keys": {}, "tallies": {}, "results": {}}


class JsonFileStore(ElectionStore):
    """Single-file JSON store

    Layout:
    { "keys":    { "<id>": {"n": "...", "p": "...", "q": "..."} },
      "tallies": { "<id>": {"encrypted_sum": "...", "ballots_received": 3, ...} },
      "results": { "<id>": {"election_id": "<id>", "yes_count": 2, ...} } }
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        if not self.path.exists() or self.path.stat().st_size == 0:
            self._atomic_write(_empty_document())
            logger.info("Initialized election store at %s", self.path)

    def _read(self) -> Dict[str, Any]:
        with self.path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        for section in ("keys", "tallies", "results"):
            data.setdefault(section, {})
        return data

    def _atomic_write(self, data: Dict[str, Any]) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, separators=(",", ":"))
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, self.path)

    def add_key(self, key: ElectionKey) -> None:
        with self._lock:
            data = self._read()
            if key.election_id in data["keys"]:
                raise AlreadyExists(f"election {key.election_id} already has a key")
            data["keys"][key.election_id] = {"n": str(key.n), "p": str(key.p), "q": str(key.q)}
            self._atomic_write(data)

    def get_key(self, election_id: str) -> Optional[ElectionKey]:
        with self._lock:
            rec = self._read()["keys"].get(election_id)
        if rec is None:
            return None
        return ElectionKey(election_id=election_id, n=int(rec["n"]), p=int(rec["p"]), q=int(rec["q"]))

    def get_tally(self, election_id: str) -> Optional[TallyRecord]:
        with self._lock:
            rec = self._read()["tallies"].get(election_id)
        if rec is None:
            return None
        return TallyRecord.from_dict(election_id, rec)

    def put_tally(self, record: TallyRecord) -> None:
        with self._lock:
            data = self._read()
            data["tallies"][record.election_id] = record.to_dict()
            self._atomic_write(data)

    def get_result(self, election_id: str) -> Optional[Result]:
        with self._lock:
            rec = self._read()["results"].get(election_id)
        return Result.from_dict(rec) if rec is not None else None

    def put_result(self, result: Result) -> None:
        with self._lock:
            data = self._read()
            data["results"][result.election_id] = result.to_dict()
            self._atomic_write(data)
