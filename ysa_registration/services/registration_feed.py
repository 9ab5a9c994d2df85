"""Live registration list for the admin dashboard."""
import logging
import threading
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ysa_registration.models.registration import Registration
from ysa_registration.services.local_cache import LocalCache
from ysa_registration.services.persistence_router import MSG_RETRY_LATER, should_fall_back
from ysa_registration.services.remote_store import RemoteStore, Subscription
from ysa_registration.utils.date_utils import timestamp_sort_key
from ysa_registration.utils.exceptions import StoreNotConfiguredError

logger = logging.getLogger(__name__)

MODE_IDLE = "idle"
MODE_REMOTE = "remote"
MODE_LOCAL = "local"
MODE_CLOSED = "closed"


def to_registrations(documents: Iterable[Tuple[Optional[str], Dict[str, Any]]]) -> List[Registration]:
    """Convert stored documents, skipping ones that can't be parsed."""
    registrations = []
    for doc_id, data in documents:
        try:
            registrations.append(Registration.from_dict(data, doc_id))
        except (ValueError, TypeError) as e:
            logger.warning(f"Skipping malformed registration {doc_id}: {e}")
    return registrations


def sort_newest_first(registrations: List[Registration]) -> List[Registration]:
    return sorted(registrations, key=lambda r: timestamp_sort_key(r.timestamp), reverse=True)


class RegistrationFeed:
    """
    Subscription to the registrations collection, newest first.

    Every remote emission replaces the whole in-memory list; deltas are
    never merged. A config or permission failure switches the feed to the
    local cache for the rest of its life and is never re-checked.
    """

    def __init__(self, remote: Optional[RemoteStore], cache: LocalCache, collection: str):
        self.remote = remote
        self.cache = cache
        self.collection = collection
        self.mode = MODE_IDLE
        self.error: Optional[str] = None
        self._lock = threading.Lock()
        self._records: List[Registration] = []
        self._subscription: Optional[Subscription] = None

    @property
    def is_degraded(self) -> bool:
        return self.mode == MODE_LOCAL

    def start(self) -> None:
        """Open the subscription; no-op if already started or degraded."""
        if self.mode != MODE_IDLE:
            return

        try:
            if self.remote is None:
                raise StoreNotConfiguredError("Database not configured")
            self._subscription = self.remote.subscribe(
                self.collection, "timestamp", True, self._on_snapshot
            )
            self.mode = MODE_REMOTE
        except Exception as error:
            if should_fall_back(error):
                logger.warning(f"Falling back to local cache for dashboard reads: {error}")
                self._subscription = None
                self.mode = MODE_LOCAL
            else:
                logger.error(f"Error fetching registrations: {error}")
                self.error = MSG_RETRY_LATER

    def snapshot(self) -> List[Registration]:
        """Current full list, newest first."""
        if self.mode == MODE_LOCAL:
            return self._read_local()

        with self._lock:
            return list(self._records)

    def close(self) -> None:
        """Release the remote listener; the feed stops updating."""
        if self._subscription is not None:
            try:
                self._subscription.unsubscribe()
            except Exception as e:
                logger.warning(f"Failed to release registration subscription: {e}")
            self._subscription = None
        self.mode = MODE_CLOSED

    def _on_snapshot(self, documents: List[Tuple[str, Dict[str, Any]]]) -> None:
        records = to_registrations(documents)
        with self._lock:
            self._records = records

    def _read_local(self) -> List[Registration]:
        try:
            items = self.cache.read_all(self.collection)
        except (IOError, TimeoutError) as e:
            logger.error(f"Failed to read local cache: {e}")
            self.error = MSG_RETRY_LATER
            return []
        return sort_newest_first(to_registrations((item.get("id"), item) for item in items))
