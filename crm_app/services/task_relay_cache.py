# crm_app/services/task_relay_cache.py
"""
Task Relay Cache - short-lived per-organization task lists pushed by automation
and read back by admins.

Entries live in an in-memory map and, optionally, in a durable store that
survives process restarts. Both expire after a fixed TTL measured with an
injected clock.
"""

import hashlib
import json
import logging
import os
import tempfile
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)

TASK_RELAY_EXTENSION_KEY = "task_relay_cache"
DEFAULT_TTL_SECONDS = 300


@dataclass
class CachedTasks:
    """Tasks stored for one organization with the time they were received"""

    organization_name: str
    tasks: List[Any]
    stored_at: float

    def to_dict(self) -> Dict[str, Any]:
        return {"organization_name": self.organization_name, "tasks": self.tasks, "stored_at": self.stored_at}

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> Optional["CachedTasks"]:
        try:
            return cls(
                organization_name=str(payload["organization_name"]),
                tasks=list(payload["tasks"]),
                stored_at=float(payload["stored_at"]),
            )
        except (KeyError, TypeError, ValueError):
            return None


class TaskStore:
    """Storage interface for cached task lists keyed by organization name"""

    def load(self, key: str) -> Optional[CachedTasks]:
        raise NotImplementedError

    def save(self, entry: CachedTasks) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def keys(self) -> Iterator[str]:
        raise NotImplementedError


class InMemoryTaskStore(TaskStore):
    def __init__(self):
        self._entries: Dict[str, CachedTasks] = {}

    def load(self, key):
        return self._entries.get(key)

    def save(self, entry):
        self._entries[entry.organization_name] = entry

    def delete(self, key):
        self._entries.pop(key, None)

    def keys(self):
        return iter(list(self._entries))


class FileTaskStore(TaskStore):
    """JSON file per organization inside ``directory``"""

    def __init__(self, directory: str):
        self.directory = directory
        os.makedirs(directory, exist_ok=True)

    def _path_for(self, key: str) -> str:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return os.path.join(self.directory, f"tasks_{digest}.json")

    def _read(self, path: str) -> Optional[CachedTasks]:
        try:
            with open(path, "r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.warning("Unreadable task relay file %s: %s", path, exc)
            return None
        if not isinstance(payload, dict):
            return None
        return CachedTasks.from_dict(payload)

    def load(self, key):
        return self._read(self._path_for(key))

    def save(self, entry):
        path = self._path_for(entry.organization_name)
        # Unique temp name per write
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=self.directory, prefix="tasks_", suffix=".tmp", delete=False
        ) as handle:
            temp_path = handle.name
            json.dump(entry.to_dict(), handle)
        try:
            os.replace(temp_path, path)
        except OSError:
            os.remove(temp_path)
            raise

    def delete(self, key):
        try:
            os.remove(self._path_for(key))
        except FileNotFoundError:
            pass

    def keys(self):
        names = []
        for filename in sorted(os.listdir(self.directory)):
            if not (filename.startswith("tasks_") and filename.endswith(".json")):
                continue
            entry = self._read(os.path.join(self.directory, filename))
            if entry is not None:
                names.append(entry.organization_name)
        return iter(names)


class TaskRelayCache:
    """TTL cache of task lists with an optional durable fallback store"""

    def __init__(
        self,
        store: Optional[TaskStore] = None,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._memory = InMemoryTaskStore()
        self._durable = store
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def _is_expired(self, entry: CachedTasks, now: float) -> bool:
        return now - entry.stored_at > self.ttl_seconds

    def _stores(self) -> List[TaskStore]:
        return [self._memory] + ([self._durable] if self._durable is not None else [])

    def put(self, organization_name: str, tasks: List[Any]) -> CachedTasks:
        """Replace the cached tasks for ``organization_name``"""
        self.cleanup()
        entry = CachedTasks(organization_name=organization_name, tasks=list(tasks), stored_at=self._clock())
        self._memory.save(entry)
        if self._durable is not None:
            try:
                self._durable.save(entry)
            except OSError as exc:
                logger.warning("Failed to persist tasks for %s: %s", organization_name, exc)
        return entry

    def get(self, organization_name: str) -> Optional[List[Any]]:
        """Return unexpired tasks for ``organization_name``, or None"""
        now = self._clock()
        for store in self._stores():
            entry = store.load(organization_name)
            if entry is None:
                continue
            if self._is_expired(entry, now):
                store.delete(organization_name)
                continue
            if store is not self._memory:
                self._memory.save(entry)
            return list(entry.tasks)
        return None

    def age_seconds(self, organization_name: str) -> Optional[float]:
        entry = self._memory.load(organization_name)
        if entry is None:
            return None
        return self._clock() - entry.stored_at

    def cleanup(self) -> int:
        """Drop expired entries from every store; returns the number removed"""
        now = self._clock()
        removed = 0
        for store in self._stores():
            for key in list(store.keys()):
                entry = store.load(key)
                if entry is not None and self._is_expired(entry, now):
                    store.delete(key)
                    removed += 1
        if removed:
            logger.debug("Task relay cache removed %s expired entries", removed)
        return removed


def init_task_relay_cache(app, clock: Callable[[], float] = time.time) -> TaskRelayCache:
    """Create the app's task relay cache from config and store it in ``app.extensions``"""
    store_dir = app.config.get("TASK_RELAY_STORE_DIR")
    store = FileTaskStore(store_dir) if store_dir else None
    cache = TaskRelayCache(
        store,
        ttl_seconds=app.config.get("TASK_RELAY_CACHE_TTL_SECONDS", DEFAULT_TTL_SECONDS),
        clock=clock,
    )
    app.extensions[TASK_RELAY_EXTENSION_KEY] = cache
    return cache


def get_task_relay_cache(app) -> TaskRelayCache:
    cache = app.extensions.get(TASK_RELAY_EXTENSION_KEY)
    if cache is None:
        cache = init_task_relay_cache(app)
    return cache
