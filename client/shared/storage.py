"""Durable key-value storage for client-local state.

Entries are plain strings kept in a single JSON document on disk. The
document is rewritten atomically (temp file then rename) with owner-only
permissions (0o600) inside an owner-only directory (0o700), since it holds
the player's identity for the room they are seated in.
"""

import contextlib
import json
import os
import tempfile
from pathlib import Path
from typing import Protocol

import structlog

logger = structlog.get_logger()

_STORAGE_DIR_MODE = 0o700
_STORAGE_FILE_MODE = 0o600


class KeyValueStorage(Protocol):
    """Protocol for independent string entries that survive a restart."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryKeyValueStorage:
    """In-process storage with the same contract, for tests and ephemeral clients."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class LocalKeyValueStorage:
    """Stores entries in a JSON file on the local filesystem.

    The file is created lazily on first write. A missing file reads as empty.
    A file that exists but does not hold a JSON object of strings raises
    ValueError on read; callers decide whether that is fatal.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser().resolve()

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"Corrupt storage file {self._path}: {e}") from e
        if not isinstance(data, dict) or not all(isinstance(v, str) for v in data.values()):
            raise ValueError(f"Storage file {self._path} must hold a JSON object of strings")
        return data

    def _write_all(self, items: dict[str, str]) -> None:
        directory = self._path.parent
        directory.mkdir(mode=_STORAGE_DIR_MODE, parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(dir=str(directory), suffix=".tmp", prefix=".storage_")
        fd_owned = True
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                fd_owned = False  # os.fdopen took ownership; it will close fd
                json.dump(items, f, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, _STORAGE_FILE_MODE)  # noqa: PTH101
            Path(tmp_path).replace(self._path)
        except BaseException:
            if fd_owned:
                with contextlib.suppress(OSError):
                    os.close(fd)
            with contextlib.suppress(OSError):
                Path(tmp_path).unlink()
            raise

    def get_item(self, key: str) -> str | None:
        return self._read_all().get(key)

    def _read_for_update(self) -> dict[str, str]:
        """Read entries before a write; a corrupt file is replaced rather than kept."""
        try:
            return self._read_all()
        except ValueError:
            logger.warning("discarding corrupt storage file", path=str(self._path))
            return {}

    def set_item(self, key: str, value: str) -> None:
        items = self._read_for_update()
        items[key] = value
        self._write_all(items)
        logger.debug("storage item written", key=key, path=str(self._path))

    def remove_item(self, key: str) -> None:
        items = self._read_for_update()
        if key not in items:
            return
        del items[key]
        self._write_all(items)
