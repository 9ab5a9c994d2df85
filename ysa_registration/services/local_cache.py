"""Local fallback cache: named slots of serialized lists in one JSON file."""
import json
import logging
import os
import shutil
import sys
import tempfile
import threading
import time
from contextlib import contextmanager
from typing import Any, Dict, List

if sys.platform == "win32":
    import msvcrt
else:
    import fcntl

logger = logging.getLogger(__name__)


class LocalCache:
    """
    Durable key/value file where each slot holds one whole list.

    Mirrors the browser localStorage contract the registration flow falls
    back to: callers only ever read the full list or write the full list.

    Usage:
        cache = LocalCache("data/local_cache.json")
        with cache.lock():
            items = cache.read_all("ysa_registrations")
            items.append(record)
            cache.write_all("ysa_registrations", items)
    """

    def __init__(self, path: str, lock_timeout: float = 5.0):
        self.path = path
        self.lock_timeout = lock_timeout
        self._thread_lock = threading.RLock()
        self._owner = threading.local()

    def read_all(self, slot: str) -> List[Dict[str, Any]]:
        """
        Read every item stored in a slot.

        Returns:
            list: Stored items, empty if the file or slot doesn't exist

        Raises:
            IOError: If the cache file is unreadable or malformed
        """
        value = self._load().get(slot, [])
        if not isinstance(value, list):
            logger.warning("Local cache slot %s is not a list; treating as empty", slot)
            return []
        return value

    def write_all(self, slot: str, items: List[Dict[str, Any]]) -> None:
        """
        Replace the whole content of a slot.

        Raises:
            IOError: If the write fails
        """
        data = self._load()
        data[slot] = list(items)
        self._save(data)

    @contextmanager
    def lock(self):
        """
        Exclusive lock around a read-modify-write sequence.

        Threads sharing this instance are serialized by an in-process lock,
        processes by the lock file. Re-entrant within the owning thread so
        helpers that lock can be called from code already holding the lock.

        Raises:
            TimeoutError: If the lock can't be acquired within lock_timeout
        """
        if not self._thread_lock.acquire(timeout=self.lock_timeout):
            raise TimeoutError(
                f"Could not acquire lock on {self.path} within {self.lock_timeout}s"
            )
        try:
            depth = getattr(self._owner, "depth", 0)
            if depth:
                self._owner.depth = depth + 1
                try:
                    yield
                finally:
                    self._owner.depth = depth
                return

            lock_path = f"{self.path}.lock"
            dir_path = os.path.dirname(lock_path)
            if dir_path:
                os.makedirs(dir_path, exist_ok=True)

            with open(lock_path, "a+") as lock_fd:
                self._acquire(lock_fd)
                self._owner.depth = 1
                try:
                    yield
                finally:
                    self._owner.depth = 0
                    self._release(lock_fd)
        finally:
            self._thread_lock.release()

    def _acquire(self, lock_fd) -> None:
        start_time = time.time()
        while True:
            try:
                if sys.platform == "win32":
                    lock_fd.seek(0)
                    msvcrt.locking(lock_fd.fileno(), msvcrt.LK_NBLCK, 1)
                else:
                    fcntl.flock(lock_fd.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                return
            except OSError:
                if time.time() - start_time > self.lock_timeout:
                    raise TimeoutError(
                        f"Could not acquire lock on {self.path} within {self.lock_timeout}s"
                    )
                time.sleep(0.05)

    def _release(self, lock_fd) -> None:
        try:
            if sys.platform == "win32":
                lock_fd.seek(0)
                msvcrt.locking(lock_fd.fileno(), msvcrt.LK_UNLCK, 1)
            else:
                fcntl.flock(lock_fd.fileno(), fcntl.LOCK_UN)
        except OSError as e:
            logger.warning("Failed to release lock on %s: %s", self.path, e)

    def _load(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                content = f.read()
        except OSError as e:
            raise IOError(f"Failed to read local cache {self.path}: {e}") from e

        if not content.strip():
            return {}

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise IOError(f"Malformed JSON in {self.path}: {e.msg}") from e

        if not isinstance(data, dict):
            raise IOError(f"Local cache {self.path} must hold a JSON object")
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        """Write atomically, keeping the previous version as .backup."""
        dir_path = os.path.dirname(self.path)
        if dir_path:
            os.makedirs(dir_path, exist_ok=True)

        if os.path.exists(self.path):
            try:
                shutil.copy2(self.path, f"{self.path}.backup")
            except OSError as e:
                raise IOError(f"Failed to create backup: {e}") from e

        temp_fd, temp_path = tempfile.mkstemp(
            dir=dir_path if dir_path else ".",
            prefix=".tmp_",
            suffix=".json"
        )

        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self.path)
        except OSError as e:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise IOError(f"Failed to write file {self.path}: {e}") from e
