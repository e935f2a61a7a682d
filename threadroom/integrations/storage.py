"""
Key/Value Association Storage

Opaque records grouped by namespace. Reads return the whole namespace for
client-side filtering; writes are keyed. The conditional writes
(`insert_if_absent`, `replace_if`, `delete_if`) compare and write under one
lock and are what creation claims are built on.

Backends:
- InMemoryKeyValueStore: process-local, does not survive restarts
- JsonFileKeyValueStore: single JSON document on disk
"""

import asyncio
import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class KeyValueStore(ABC):
    """Namespaced key/value record storage."""

    supports_conditional_writes: bool = True

    @abstractmethod
    async def read_all(self, namespace: str) -> List[Record]:
        ...

    @abstractmethod
    async def insert_if_absent(self, namespace: str, key: str, record: Record) -> bool:
        """Write `record` only if `key` is unused. Returns True when written."""
        ...

    @abstractmethod
    async def replace_if(self, namespace: str, key: str, expected: Record, record: Record) -> bool:
        """Overwrite `key` only if it still holds `expected`. Returns True when written."""
        ...

    @abstractmethod
    async def delete_if(self, namespace: str, key: str, expected: Record) -> bool:
        """Delete `key` only if it still holds `expected`. Returns True when deleted."""
        ...


class InMemoryKeyValueStore(KeyValueStore):
    """Lock-guarded in-memory store."""

    def __init__(self):
        self._lock = threading.Lock()
        self._data: Dict[str, Dict[str, Record]] = {}

    async def read_all(self, namespace: str) -> List[Record]:
        with self._lock:
            return [deepcopy(r) for r in self._data.get(namespace, {}).values()]

    async def insert_if_absent(self, namespace: str, key: str, record: Record) -> bool:
        with self._lock:
            bucket = self._data.setdefault(namespace, {})
            if key in bucket:
                return False
            bucket[key] = deepcopy(record)
            return True

    async def replace_if(self, namespace: str, key: str, expected: Record, record: Record) -> bool:
        with self._lock:
            bucket = self._data.setdefault(namespace, {})
            if bucket.get(key) != expected:
                return False
            bucket[key] = deepcopy(record)
            return True

    async def delete_if(self, namespace: str, key: str, expected: Record) -> bool:
        with self._lock:
            bucket = self._data.get(namespace, {})
            if key not in bucket or bucket[key] != expected:
                return False
            del bucket[key]
            return True


class JsonFileKeyValueStore(KeyValueStore):
    """
    Store persisted as one JSON document: {namespace: {key: record}}.

    Every write rewrites the whole file through a temp file + os.replace, so
    a crash never leaves a half-written document. The lock only serializes
    writers inside this process.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, Dict[str, Record]]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Association file {self.path} is not valid JSON: {e}")
            raise
        if not isinstance(data, dict):
            raise ValueError(f"Association file {self.path} must hold a JSON object")
        return data

    def _save(self, data: Dict[str, Dict[str, Record]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp_path, self.path)
        except Exception:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def _read_all(self, namespace: str) -> List[Record]:
        with self._lock:
            return list(self._load().get(namespace, {}).values())

    def _insert_if_absent(self, namespace: str, key: str, record: Record) -> bool:
        with self._lock:
            data = self._load()
            bucket = data.setdefault(namespace, {})
            if key in bucket:
                return False
            bucket[key] = record
            self._save(data)
            return True

    def _replace_if(self, namespace: str, key: str, expected: Record, record: Record) -> bool:
        with self._lock:
            data = self._load()
            bucket = data.setdefault(namespace, {})
            if bucket.get(key) != expected:
                return False
            bucket[key] = record
            self._save(data)
            return True

    def _delete_if(self, namespace: str, key: str, expected: Record) -> bool:
        with self._lock:
            data = self._load()
            bucket = data.get(namespace, {})
            if key not in bucket or bucket[key] != expected:
                return False
            del bucket[key]
            self._save(data)
            return True

    async def read_all(self, namespace: str) -> List[Record]:
        return await asyncio.to_thread(self._read_all, namespace)

    async def insert_if_absent(self, namespace: str, key: str, record: Record) -> bool:
        return await asyncio.to_thread(self._insert_if_absent, namespace, key, record)

    async def replace_if(self, namespace: str, key: str, expected: Record, record: Record) -> bool:
        return await asyncio.to_thread(self._replace_if, namespace, key, expected, record)

    async def delete_if(self, namespace: str, key: str, expected: Record) -> bool:
        return await asyncio.to_thread(self._delete_if, namespace, key, expected)
