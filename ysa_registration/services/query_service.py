"""Pure filtering, pagination and numbering for the dashboard list."""
import math
from collections import Counter
from typing import Dict, List, Sequence

from ysa_registration.models.filters import FilterState, Page
from ysa_registration.models.registration import Registration


def matches(registration: Registration, state: FilterState) -> bool:
    """True if a registration passes every active filter."""
    term = state.search.strip().lower()
    if term:
        found = (
            term in registration.full_name.lower()
            or term in registration.english_name.lower()
            or state.search.strip() in registration.phone_number
        )
        if not found:
            return False

    if state.gender and registration.gender != state.gender:
        return False
    if state.t_shirt_size and registration.t_shirt_size != state.t_shirt_size:
        return False
    if state.stake and registration.stake != state.stake:
        return False
    if state.ward and registration.ward != state.ward:
        return False
    if state.paid is not None and registration.is_paid != state.paid:
        return False

    return True


def apply_filters(registrations: Sequence[Registration], state: FilterState) -> List[Registration]:
    """Filtered list, order preserved."""
    return [r for r in registrations if matches(r, state)]


def paginate(items: Sequence[Registration], page: int, page_size: int = 50) -> Page:
    """
    Slice one page out of a list.

    Args:
        items: Full filtered list
        page: 1-based page number, clamped into range
        page_size: Rows per page

    Returns:
        Page with at least one (possibly empty) page
    """
    total_items = len(items)
    total_pages = max(1, math.ceil(total_items / page_size))
    current = min(max(1, page), total_pages)
    start = (current - 1) * page_size

    return Page(
        items=list(items[start:start + page_size]),
        page=current,
        total_pages=total_pages,
        total_items=total_items,
        start_index=start,
    )


def display_number(total: int, index: int) -> int:
    """
    Row number counted backwards so the newest row gets the highest number.

    Example: with 10 rows, index 0 (newest) shows 10 and index 9 shows 1.
    """
    return total - index


def summarize(registrations: Sequence[Registration]) -> Dict[str, int]:
    """Header counts: total, paid, and one entry per payment status."""
    by_status = Counter(r.payment_status for r in registrations)
    summary = {
        "total": len(registrations),
        "paid": sum(1 for r in registrations if r.is_paid),
    }
    summary.update(by_status)
    return summary
