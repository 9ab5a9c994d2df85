"""Remote-first writes with fallback to the local cache."""
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from ysa_registration.services.local_cache import LocalCache
from ysa_registration.services.remote_store import RemoteStore
from ysa_registration.utils.exceptions import (
    StoreNotConfiguredError,
    StorePermissionError,
)

logger = logging.getLogger(__name__)

ERROR_CONFIG = "config"
ERROR_PERMISSION = "permission"
ERROR_OTHER = "other"

CONFIG_MARKERS = ("Database not configured",)
PERMISSION_MARKERS = ("permission-denied", "Missing or insufficient permissions")

MSG_RETRY_LATER = "We could not save your data. Please try again later or check your internet connection."

# (cached records, candidate record, id to ignore) -> conflict message or None
ConflictCheck = Callable[[List[Dict[str, Any]], Dict[str, Any], Optional[str]], Optional[str]]


def classify_store_error(error: BaseException) -> str:
    """
    Classify a failed remote call.

    Returns:
        "config" if the store is not configured,
        "permission" if the store denied the operation,
        "other" for everything else (no fallback)
    """
    message = str(error)

    if isinstance(error, StoreNotConfiguredError) or any(m in message for m in CONFIG_MARKERS):
        return ERROR_CONFIG

    if isinstance(error, StorePermissionError) or any(m in message for m in PERMISSION_MARKERS):
        return ERROR_PERMISSION

    return ERROR_OTHER


def should_fall_back(error: BaseException) -> bool:
    return classify_store_error(error) != ERROR_OTHER


def new_local_id(taken: Iterable[str] = ()) -> str:
    """ID for records created while the remote store is unavailable."""
    taken = set(taken)
    stamp = int(time.time() * 1000)
    while f"local_{stamp}" in taken:
        stamp += 1
    return f"local_{stamp}"


class WriteOutcome(str, Enum):
    REMOTE = "remote"
    LOCAL = "local"
    CONFLICT = "conflict"
    FAILED = "failed"


@dataclass(frozen=True)
class WriteResult:
    """Final state of one write attempt."""

    outcome: WriteOutcome
    record_id: Optional[str] = None
    message: str = ""

    @property
    def success(self) -> bool:
        return self.outcome in (WriteOutcome.REMOTE, WriteOutcome.LOCAL)


class PersistenceRouter:
    """
    Route writes for one collection.

    A write tries the remote store once. Config or permission failures
    fall back to the local cache slot; any other failure is fatal for that
    attempt and nothing is mutated. No retries.
    """

    def __init__(
        self,
        remote: Optional[RemoteStore],
        cache: LocalCache,
        collection: str,
        slot: Optional[str] = None,
        conflict_check: Optional[ConflictCheck] = None,
    ):
        self.remote = remote
        self.cache = cache
        self.collection = collection
        self.slot = slot or collection
        self.conflict_check = conflict_check

    def create(self, data: Dict[str, Any]) -> WriteResult:
        """Insert a new record."""
        def remote_call() -> WriteResult:
            record_id = self._require_remote().add(self.collection, data)
            return WriteResult(WriteOutcome.REMOTE, record_id)

        def local_call() -> WriteResult:
            with self.cache.lock():
                items = self.cache.read_all(self.slot)
                conflict = self._check_conflict(items, data, None)
                if conflict:
                    return WriteResult(WriteOutcome.CONFLICT, message=conflict)

                record_id = new_local_id(str(item.get("id")) for item in items)
                items.append({**data, "id": record_id})
                self.cache.write_all(self.slot, items)
            return WriteResult(WriteOutcome.LOCAL, record_id)

        return self._route(f"create in {self.collection}", remote_call, local_call)

    def update(
        self,
        record_id: str,
        changes: Dict[str, Any],
        full_record: Optional[Dict[str, Any]] = None,
    ) -> WriteResult:
        """
        Apply field changes to a record.

        Args:
            record_id: Record to change
            changes: Fields to write (the whole record for a replace)
            full_record: Complete record, used to seed the local cache when
                the record only exists remotely
        """
        def remote_call() -> WriteResult:
            self._require_remote().update(self.collection, record_id, changes)
            return WriteResult(WriteOutcome.REMOTE, record_id)

        def local_call() -> WriteResult:
            with self.cache.lock():
                items = self.cache.read_all(self.slot)
                index = self._find_index(items, record_id)

                if index is None:
                    if full_record is None:
                        return WriteResult(WriteOutcome.FAILED, record_id, MSG_RETRY_LATER)
                    merged = {**full_record, **changes, "id": record_id}
                else:
                    merged = {**items[index], **changes, "id": record_id}

                conflict = self._check_conflict(items, merged, record_id)
                if conflict:
                    return WriteResult(WriteOutcome.CONFLICT, record_id, conflict)

                if index is None:
                    items.append(merged)
                else:
                    items[index] = merged
                self.cache.write_all(self.slot, items)
            return WriteResult(WriteOutcome.LOCAL, record_id)

        return self._route(f"update {self.collection}/{record_id}", remote_call, local_call)

    def delete(self, record_id: str) -> WriteResult:
        """Delete a record immediately."""
        def remote_call() -> WriteResult:
            self._require_remote().delete(self.collection, record_id)
            return WriteResult(WriteOutcome.REMOTE, record_id)

        def local_call() -> WriteResult:
            with self.cache.lock():
                items = self.cache.read_all(self.slot)
                remaining = [item for item in items if str(item.get("id")) != record_id]
                self.cache.write_all(self.slot, remaining)
            return WriteResult(WriteOutcome.LOCAL, record_id)

        return self._route(f"delete {self.collection}/{record_id}", remote_call, local_call)

    def _route(
        self,
        action: str,
        remote_call: Callable[[], WriteResult],
        local_call: Callable[[], WriteResult],
    ) -> WriteResult:
        try:
            return remote_call()
        except Exception as error:
            kind = classify_store_error(error)
            if kind == ERROR_OTHER:
                logger.error(f"Remote {action} failed: {error}")
                return WriteResult(WriteOutcome.FAILED, message=MSG_RETRY_LATER)
            logger.warning(f"Falling back to local cache for {action} ({kind}): {error}")

        try:
            return local_call()
        except (IOError, TimeoutError) as error:
            logger.error(f"Local {action} failed: {error}")
            return WriteResult(WriteOutcome.FAILED, message=MSG_RETRY_LATER)

    def _require_remote(self) -> RemoteStore:
        if self.remote is None:
            raise StoreNotConfiguredError("Database not configured")
        return self.remote

    def _check_conflict(
        self,
        items: List[Dict[str, Any]],
        candidate: Dict[str, Any],
        exclude_id: Optional[str],
    ) -> Optional[str]:
        if self.conflict_check is None:
            return None
        return self.conflict_check(items, candidate, exclude_id)

    @staticmethod
    def _find_index(items: List[Dict[str, Any]], record_id: str) -> Optional[int]:
        for index, item in enumerate(items):
            if str(item.get("id")) == record_id:
                return index
        return None
