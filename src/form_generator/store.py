from __future__ import annotations

import logging
import os
import stat
import tempfile
import threading
from enum import Enum
from pathlib import Path
from typing import Dict, List, Union

import anyio
from filelock import FileLock
from pydantic import TypeAdapter, ValidationError

from .errors import StoreError
from .normalizer import SubmissionRecord

logger = logging.getLogger(__name__)

_RECORDS = TypeAdapter(List[SubmissionRecord])

_PATH_LOCKS: Dict[str, threading.Lock] = {}
_PATH_LOCKS_GUARD = threading.Lock()


def _current_umask() -> int:
    # os.umask can only be read by setting it; done once, at import.
    mask = os.umask(0o022)
    os.umask(mask)
    return mask


_NEW_FILE_MODE = 0o666 & ~_current_umask()


def _path_lock(path: Path) -> threading.Lock:
    # One lock per store file for the whole process, however many stores point at it.
    key = str(path)
    with _PATH_LOCKS_GUARD:
        lock = _PATH_LOCKS.get(key)
        if lock is None:
            lock = threading.Lock()
            _PATH_LOCKS[key] = lock
        return lock


class CorruptStorePolicy(str, Enum):
    """What to do when the store file exists but is not a valid submission list."""

    RESET = "reset"
    RAISE = "raise"

    @classmethod
    def parse(cls, value: Union[str, "CorruptStorePolicy", None]) -> "CorruptStorePolicy":
        if isinstance(value, cls):
            return value
        t = str(value or "").strip().lower()
        if not t:
            return cls.RESET
        try:
            return cls(t)
        except ValueError:
            raise ValueError(f"unknown corrupt-store policy: {value!r} (expected 'reset' or 'raise')") from None


class AppendStore:
    """
    Append-only submission log backed by one JSON file.

    Every append is a full read-modify-write of the file, done while holding both a
    process-wide lock for the path and an OS file lock (`<path>.lock`), so concurrent
    appends from threads or worker processes never interleave. The new content is written
    to a sibling temp file and moved over the store file, so a failed write leaves the
    previous content in place.
    """

    def __init__(
        self,
        path: Union[str, Path],
        on_corrupt: Union[str, CorruptStorePolicy] = CorruptStorePolicy.RESET,
    ) -> None:
        self.path = Path(path).expanduser().resolve()
        self.on_corrupt = CorruptStorePolicy.parse(on_corrupt)
        self._lock = _path_lock(self.path)
        self._file_lock = FileLock(f"{self.path}.lock")

    def __repr__(self) -> str:
        return f"AppendStore({str(self.path)!r}, on_corrupt={self.on_corrupt.value!r})"

    def append(self, record: SubmissionRecord) -> int:
        """Append `record` to the end of the log. Returns the number of stored records."""
        with self._lock:
            self._acquire_file_lock()
            try:
                records = self._read()
                records.append(record)
                self._write(records)
            finally:
                self._file_lock.release()
        logger.debug("appended submission to %s (%d total)", self.path, len(records))
        return len(records)

    async def append_async(self, record: SubmissionRecord) -> int:
        # Runs to completion even if the awaiting request is cancelled.
        return await anyio.to_thread.run_sync(self.append, record)

    def read_all(self) -> List[SubmissionRecord]:
        with self._lock:
            self._acquire_file_lock()
            try:
                return self._read()
            finally:
                self._file_lock.release()

    def _acquire_file_lock(self) -> None:
        try:
            self._file_lock.acquire()
        except OSError as exc:
            raise StoreError(self.path, "lock", f"failed to lock storage file {self.path}: {exc}") from exc

    def _read(self) -> List[SubmissionRecord]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError as exc:
            logger.error("Failed to read %s: %s", self.path, exc)
            raise StoreError(self.path, "read") from exc

        try:
            return _RECORDS.validate_json(raw)
        except ValidationError as exc:
            return self._on_corrupt_file(exc)

    def _on_corrupt_file(self, exc: ValidationError) -> List[SubmissionRecord]:
        if self.on_corrupt is CorruptStorePolicy.RAISE:
            raise StoreError(self.path, "read", f"storage file {self.path} is not a valid submission log") from exc
        logger.warning(
            "storage file %s is not a valid submission log (%d errors); starting from an empty log",
            self.path,
            exc.error_count(),
        )
        return []

    def _file_mode(self) -> int:
        """Mode for the rewritten store: keep the existing file's, else umask default."""
        try:
            return stat.S_IMODE(os.stat(self.path).st_mode)
        except FileNotFoundError:
            return _NEW_FILE_MODE

    def _write(self, records: List[SubmissionRecord]) -> None:
        data = _RECORDS.dump_json(records, indent=2)
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "wb",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(data)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.chmod(tmp_name, self._file_mode())
            os.replace(tmp_name, self.path)
        except OSError as exc:
            logger.error("Failed to write %s: %s", self.path, exc)
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except FileNotFoundError:
                    pass
            raise StoreError(self.path, "write") from exc
