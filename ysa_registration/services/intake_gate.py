"""Capacity gate evaluated before the registration form is usable."""
import logging
from dataclasses import dataclass
from typing import Optional

from ysa_registration.services.local_cache import LocalCache
from ysa_registration.services.persistence_router import should_fall_back
from ysa_registration.services.remote_store import RemoteStore
from ysa_registration.utils.exceptions import StoreNotConfiguredError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GateStatus:
    """Result of one capacity check."""

    is_open: bool
    count: Optional[int]
    capacity: int
    degraded: bool = False

    @property
    def remaining(self) -> Optional[int]:
        if self.count is None:
            return None
        return max(0, self.capacity - self.count)


def get_registration_count(
    remote: Optional[RemoteStore],
    cache: LocalCache,
    collection: str,
) -> int:
    """
    Count accepted registrations in the authoritative store.

    Returns:
        int: Remote count, or the local cache count when the remote store
        is not configured or denies permission

    Raises:
        Exception: Any other remote failure, or a local cache read failure
    """
    try:
        if remote is None:
            raise StoreNotConfiguredError("Database not configured")
        return remote.count(collection)
    except Exception as error:
        if not should_fall_back(error):
            raise
        logger.info(f"Counting registrations from local cache: {error}")

    return len(cache.read_all(collection))


def check_registration_open(
    remote: Optional[RemoteStore],
    cache: LocalCache,
    collection: str,
    capacity: int,
) -> GateStatus:
    """
    Decide whether a new registration may be accepted.

    Returns:
        GateStatus with is_open False once count >= capacity

    Behavior:
        - Fails OPEN if the count can't be retrieved; this is logged as a
          degraded condition and never shown to the registrant
    """
    try:
        count = get_registration_count(remote, cache, collection)
    except Exception as e:
        logger.warning(f"Capacity check degraded, leaving registration open: {e}")
        return GateStatus(is_open=True, count=None, capacity=capacity, degraded=True)

    return GateStatus(is_open=count < capacity, count=count, capacity=capacity)
