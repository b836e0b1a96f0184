"""Durable key-value storage for the cart and order documents."""

import fcntl
import json
import os
import re
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator, Protocol, TypeVar

from . import settings
from .errors import ConcurrentModificationError, InvalidSchemaVersionError, StorageError
from .logging_utils import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = 1

_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")

T = TypeVar("T")


class Storage(Protocol):
    """
    Persistence adapter the aggregates save through.

    Documents carry a revision counter. Passing expected_revision to save()
    makes the write conditional on nobody else having saved in between.
    """

    def load(self, key: str) -> dict[str, Any] | None: ...

    def save(
        self, key: str, document: dict[str, Any], expected_revision: int | None = None
    ) -> int: ...


def _check_key(key: str) -> None:
    if not _KEY_RE.match(key):
        raise StorageError(key, "key may only contain letters, digits, '.', '_' and '-'")


def _check_schema(key: str, data: Any) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise StorageError(key, "document is not a JSON object")
    version = data.get("schema_version", 0)
    if version != SCHEMA_VERSION:
        raise InvalidSchemaVersionError(version, SCHEMA_VERSION)
    return data


def _next_document(
    key: str,
    current: dict[str, Any] | None,
    document: dict[str, Any],
    expected_revision: int | None,
) -> dict[str, Any]:
    """Build the document to write, enforcing the revision check."""
    current_revision = current.get("revision", 0) if current else 0
    if expected_revision is not None and expected_revision != current_revision:
        raise ConcurrentModificationError(key, expected_revision, current_revision)

    data = dict(document)
    data["schema_version"] = SCHEMA_VERSION
    data["revision"] = current_revision + 1
    return data


class Refreshable(Protocol):
    def refresh(self) -> None: ...


def retry_on_conflict(aggregate: Refreshable, operation: Callable[[], T]) -> T:
    """
    Run operation; if another writer saved first, reload aggregate and run it once more.

    Raises:
        ConcurrentModificationError: If the retry conflicts as well.
    """
    try:
        return operation()
    except ConcurrentModificationError as e:
        logger.info("Revision conflict on %s (%d != %d); reloading", e.key, e.expected, e.actual)
        aggregate.refresh()
        return operation()


class JsonFileStore:
    """Stores each document as <key>.json in a data directory."""

    def __init__(self, data_dir: Path | None = None):
        """
        Initialize JsonFileStore.

        Args:
            data_dir: Override data directory (for testing).
        """
        self.data_dir = Path(data_dir) if data_dir is not None else Path(settings.DATA_DIR)

    def path_for(self, key: str) -> Path:
        _check_key(key)
        return self.data_dir / f"{key}.json"

    def _ensure_dir(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _lock(self, key: str) -> Iterator[None]:
        """Acquire exclusive lock on a document for read-modify-write operations."""
        self._ensure_dir()
        lock_path = self.data_dir / f".{key}.lock"
        with open(lock_path, "w") as lock_file:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def _read(self, key: str) -> dict[str, Any] | None:
        path = self.path_for(key)
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StorageError(key, f"corrupt JSON: {e}") from e

        return _check_schema(key, data)

    def load(self, key: str) -> dict[str, Any] | None:
        """
        Load a document, or None if it was never saved.

        Raises:
            StorageError: If the file is not valid JSON.
            InvalidSchemaVersionError: If schema version is unsupported.
        """
        return self._read(key)

    def save(
        self, key: str, document: dict[str, Any], expected_revision: int | None = None
    ) -> int:
        """
        Save a document atomically and return its new revision.

        Uses write-to-temp-then-rename for atomicity.

        Raises:
            ConcurrentModificationError: If expected_revision is stale.
        """
        path = self.path_for(key)

        with self._lock(key):
            data = _next_document(key, self._read(key), document, expected_revision)

            fd, temp_path = tempfile.mkstemp(
                dir=self.data_dir, prefix=f".{key}_", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                    f.write("\n")
                os.replace(temp_path, path)
            except Exception:
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass
                raise

        logger.debug("Saved %s at revision %d", key, data["revision"])
        return data["revision"]


class MemoryStore:
    """In-process storage. Documents are kept as JSON text."""

    def __init__(self):
        self._documents: dict[str, str] = {}
        self._mutex = threading.Lock()

    def raw(self, key: str) -> str | None:
        """Return the serialized text of a document."""
        return self._documents.get(key)

    def load(self, key: str) -> dict[str, Any] | None:
        _check_key(key)
        text = self._documents.get(key)
        if text is None:
            return None
        return _check_schema(key, json.loads(text))

    def save(
        self, key: str, document: dict[str, Any], expected_revision: int | None = None
    ) -> int:
        _check_key(key)
        with self._mutex:
            current = self.load(key)
            data = _next_document(key, current, document, expected_revision)
            self._documents[key] = json.dumps(data, ensure_ascii=False)
        return data["revision"]
