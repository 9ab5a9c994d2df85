"""Duplicate detection against the remote store and the local cache."""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from ysa_registration.services.local_cache import LocalCache
from ysa_registration.services.remote_store import RemoteStore

logger = logging.getLogger(__name__)

FIELD_NAME_PAIR = "name pair"
FIELD_RECORD_NUMBER = "membership code"


@dataclass(frozen=True)
class DuplicateMatch:
    """Which field collided and with what value."""

    field: str
    value: str

    def message(self) -> str:
        if self.field == FIELD_NAME_PAIR:
            return f"A registration for {self.value} already exists"
        return f"Membership record number {self.value} is already registered"


def _name_pair_label(full_name: str, english_name: str) -> str:
    return f"{full_name} ({english_name})"


def _find_remote(
    remote: Optional[RemoteStore],
    collection: str,
    full_name: str,
    english_name: str,
    record_number: str,
    exclude_id: Optional[str],
) -> Optional[DuplicateMatch]:
    if remote is None:
        return None

    def _hits(filters: Dict[str, Any]) -> bool:
        # Two matches so an edit can exclude itself and still see another
        for doc_id, _ in remote.find(collection, filters, limit=2):
            if doc_id != exclude_id:
                return True
        return False

    if _hits({"fullName": full_name, "englishName": english_name}):
        return DuplicateMatch(FIELD_NAME_PAIR, _name_pair_label(full_name, english_name))

    if record_number and _hits({"recordNumber": record_number}):
        return DuplicateMatch(FIELD_RECORD_NUMBER, record_number)

    return None


def find_local_duplicate(
    records: Iterable[Dict[str, Any]],
    full_name: str,
    english_name: str,
    record_number: str = "",
    exclude_id: Optional[str] = None,
) -> Optional[DuplicateMatch]:
    """
    Scan cached records for a name-pair or record-number collision.

    Name pairs are compared case-sensitively after trimming. The name pair
    is checked across all records before the record number.
    """
    candidates: List[Dict[str, Any]] = [
        r for r in records
        if exclude_id is None or str(r.get("id")) != exclude_id
    ]

    for record in candidates:
        if (str(record.get("fullName", "")).strip() == full_name
                and str(record.get("englishName", "")).strip() == english_name):
            return DuplicateMatch(FIELD_NAME_PAIR, _name_pair_label(full_name, english_name))

    if record_number:
        for record in candidates:
            if str(record.get("recordNumber") or "").strip() == record_number:
                return DuplicateMatch(FIELD_RECORD_NUMBER, record_number)

    return None


def find_duplicate(
    remote: Optional[RemoteStore],
    cache: LocalCache,
    collection: str,
    full_name: str,
    english_name: str,
    record_number: str = "",
    exclude_id: Optional[str] = None,
) -> Optional[DuplicateMatch]:
    """
    Check whether an equivalent registration already exists.

    Args:
        remote: Remote store, or None when not configured
        cache: Local fallback cache
        collection: Registrations collection (also the cache slot)
        full_name: Khmer name
        english_name: English name
        record_number: Normalized membership code, "" when not supplied
        exclude_id: Record being edited, ignored in the comparison

    Returns:
        DuplicateMatch for the first collision found, None otherwise

    Behavior:
        - Remote store first (name pair, then record number)
        - Remote failures are logged and swallowed
        - Local cache always scanned afterwards in the same order, since
          writes may have degraded to it
    """
    full_name = full_name.strip()
    english_name = english_name.strip()
    record_number = (record_number or "").strip()

    try:
        match = _find_remote(remote, collection, full_name, english_name, record_number, exclude_id)
        if match is not None:
            return match
    except Exception as e:
        logger.warning(f"Remote duplicate check failed, using local cache only: {e}")

    try:
        records = cache.read_all(collection)
    except (IOError, TimeoutError) as e:
        logger.warning(f"Local duplicate check failed: {e}")
        return None

    return find_local_duplicate(records, full_name, english_name, record_number, exclude_id)


def local_conflict_check(
    items: List[Dict[str, Any]],
    candidate: Dict[str, Any],
    exclude_id: Optional[str],
) -> Optional[str]:
    """PersistenceRouter hook: repeat the uniqueness check inside the cache lock."""
    match = find_local_duplicate(
        items,
        str(candidate.get("fullName", "")).strip(),
        str(candidate.get("englishName", "")).strip(),
        str(candidate.get("recordNumber") or "").strip(),
        exclude_id,
    )
    return match.message() if match else None
