"""
Durable key/value storage backends with change notification.

These mirror browser local storage: string values under string keys, a probe
for availability, and a change event that fires in *other* holders of the same
storage when a key is written or removed. Writers never receive their own
events.

Backends:
    MemoryStorage: in-process dict; wraps the browser store snapshot handed to
        a Dash callback, and stands in for storage in tests.
    FileStorage: one JSON file per key in a directory shared between
        processes; poll() detects writes made by other processes.
"""

import os
import re
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from core.errors import StorageUnavailableError
from core.logging_config import get_logger

logger = get_logger(__name__)

PROBE_KEY = "__storage_test__"


@dataclass(frozen=True)
class StorageEvent:
    """A key changed in the shared storage. new_value is None on removal."""
    key: str
    old_value: Optional[str]
    new_value: Optional[str]


StorageListener = Callable[[StorageEvent], None]


class Storage(ABC):
    """Base class for storage backends: item access plus a listener registry."""

    def __init__(self) -> None:
        self._listeners: list[StorageListener] = []

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """
        Return the stored value or None.

        Raises:
            StorageUnavailableError: The backend cannot be read.
            ValueError: The stored bytes are not a readable string.
        """

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store a value. Raises StorageUnavailableError."""

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove a key if present. Raises StorageUnavailableError."""

    def is_available(self) -> bool:
        """Probe the backend with a throwaway write, as browsers require."""
        try:
            self.set_item(PROBE_KEY, PROBE_KEY)
            self.remove_item(PROBE_KEY)
            return True
        except StorageUnavailableError:
            return False

    def subscribe(self, listener: StorageListener) -> Callable[[], None]:
        """Register a change listener. Returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _dispatch(self, event: StorageEvent) -> None:
        if event.key == PROBE_KEY:
            return
        for listener in list(self._listeners):
            listener(event)


class MemoryStorage(Storage):
    """
    Dict-backed storage.

    Args:
        initial: Starting contents
        available: When False every access raises StorageUnavailableError,
            which is how a browser with storage disabled behaves
    """

    def __init__(self, initial: Optional[dict[str, str]] = None, available: bool = True):
        super().__init__()
        self._items: dict[str, str] = dict(initial or {})
        self.available = available

    def _check(self) -> None:
        if not self.available:
            raise StorageUnavailableError("storage is disabled")

    def get_item(self, key: str) -> Optional[str]:
        self._check()
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._check()
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._check()
        self._items.pop(key, None)

    def external_write(self, key: str, value: Optional[str]) -> None:
        """
        Apply a change made by another tab and notify listeners.

        A value of None removes the key.
        """
        old_value = self._items.get(key)
        if value is None:
            self._items.pop(key, None)
        else:
            self._items[key] = value
        if old_value != value:
            self._dispatch(StorageEvent(key, old_value, value))

    def snapshot(self) -> dict[str, str]:
        return dict(self._items)


_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class FileStorage(Storage):
    """
    Directory-backed storage shared between processes.

    Each key is stored in <directory>/<key>.json and replaced atomically.
    Every instance remembers the values it last wrote or observed; poll()
    reports keys whose on-disk value differs, so each process sees the
    writes of the others and never its own.
    """

    def __init__(self, directory: Path):
        super().__init__()
        self.directory = Path(directory)
        self._observed: dict[str, Optional[str]] = {}
        try:
            self._observed = self._read_all()
        except StorageUnavailableError:
            logger.debug(f"Storage directory not readable yet: {self.directory}")

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            raise ValueError(f"{path} is not valid UTF-8: {e}") from e
        except OSError as e:
            raise StorageUnavailableError(f"Cannot read {path}: {e}") from e

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_name, path)
        except OSError as e:
            raise StorageUnavailableError(f"Cannot write {path}: {e}") from e
        self._observed[key] = value

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageUnavailableError(f"Cannot remove {path}: {e}") from e
        self._observed[key] = None

    def _read_all(self) -> dict[str, Optional[str]]:
        if not self.directory.exists():
            return {}
        values = {}
        try:
            for path in self.directory.glob("*.json"):
                # Undecodable files still register as changed; get_item rejects them
                values[path.stem] = path.read_bytes().decode("utf-8", errors="replace")
        except OSError as e:
            raise StorageUnavailableError(f"Cannot scan {self.directory}: {e}") from e
        return values

    def poll(self) -> list[StorageEvent]:
        """
        Detect changes written by other processes and notify listeners.

        Returns:
            The events dispatched, in key order.
        """
        try:
            current = self._read_all()
        except StorageUnavailableError as e:
            logger.debug(f"Skipping storage poll: {e}")
            return []

        events = []
        for key in sorted(set(current) | set(self._observed)):
            old_value = self._observed.get(key)
            new_value = current.get(key)
            if old_value != new_value:
                events.append(StorageEvent(key, old_value, new_value))

        self._observed = {key: value for key, value in current.items()}
        for event in events:
            self._dispatch(event)
        return events
