"""KeyValueStorage backends.

  - MemoryStorage: process-local dict.  Used for session-scoped flags and
    in tests; ``available=False`` and ``quota`` emulate disabled or full
    storage.
  - JsonFileStorage: a single JSON object on disk, persistent across
    restarts.  Used for drafts when ``SURVEY_DRAFT_PATH`` is set.
  - NamespacedStorage: per-respondent key space inside another backend.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from mission_survey.errors import StorageUnavailableError
from mission_survey.interfaces import KeyValueStorage

logger = logging.getLogger(__name__)


class MemoryStorage(KeyValueStorage):
    """In-memory storage with optional quota (total bytes of keys + values)."""

    def __init__(self, *, quota: int | None = None, available: bool = True) -> None:
        self._data: dict[str, str] = {}
        self.quota = quota
        self.available = available

    def _check(self) -> None:
        if not self.available:
            raise StorageUnavailableError("Storage is disabled")

    def _size_with(self, key: str, value: str) -> int:
        size = sum(len(k) + len(v) for k, v in self._data.items() if k != key)
        return size + len(key) + len(value)

    def get(self, key: str) -> str | None:
        self._check()
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._check()
        if self.quota is not None and self._size_with(key, value) > self.quota:
            raise StorageUnavailableError(f"Storage quota of {self.quota} bytes exceeded")
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._check()
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        self._check()
        return list(self._data)


class JsonFileStorage(KeyValueStorage):
    """Persist all keys as one JSON object in ``path``.

    Every write rewrites the file through a temporary sibling and an atomic
    rename.  A corrupt file reads as empty and is overwritten by the next
    write.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def _read(self) -> dict[str, str]:
        try:
            with self._path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError:
            logger.warning("Draft file %s is corrupt; treating as empty", self._path)
            return {}
        except OSError as exc:
            raise StorageUnavailableError(f"Cannot read {self._path}: {exc}") from exc
        if not isinstance(data, dict):
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: dict[str, str]) -> None:
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tmp.open("w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp, self._path)
        except OSError as exc:
            raise StorageUnavailableError(f"Cannot write {self._path}: {exc}") from exc

    def get(self, key: str) -> str | None:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    def keys(self) -> list[str]:
        return list(self._read())


class NamespacedStorage(KeyValueStorage):
    """View of ``storage`` where every key lives under ``namespace/``.

    Gives each respondent a private key space inside one shared backend.
    ``namespace`` may be reassigned (e.g. after sign-in); keys written
    under the previous namespace stay where they are.
    """

    SEPARATOR = "/"

    def __init__(self, storage: KeyValueStorage, namespace: str) -> None:
        self._storage = storage
        self.namespace = namespace

    def _prefix(self) -> str:
        return f"{self.namespace}{self.SEPARATOR}"

    def get(self, key: str) -> str | None:
        return self._storage.get(self._prefix() + key)

    def set(self, key: str, value: str) -> None:
        self._storage.set(self._prefix() + key, value)

    def remove(self, key: str) -> None:
        self._storage.remove(self._prefix() + key)

    def keys(self) -> list[str]:
        prefix = self._prefix()
        return [k[len(prefix):] for k in self._storage.keys() if k.startswith(prefix)]


def namespaces(storage: KeyValueStorage) -> list[str]:
    """Namespaces (``kind:id``) that hold at least one key, sorted."""
    found = set()
    for key in storage.keys():
        head, sep, _ = key.partition(NamespacedStorage.SEPARATOR)
        if sep and ":" in head:
            found.add(head)
    return sorted(found)
