"""Registration intake and admin mutations."""
import logging
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Optional, Tuple

from ysa_registration.models.registration import Registration
from ysa_registration.services.duplicate_resolver import find_duplicate, local_conflict_check
from ysa_registration.services.intake_gate import check_registration_open
from ysa_registration.services.persistence_router import PersistenceRouter, WriteOutcome
from ysa_registration.services.stores import Stores, get_stores
from ysa_registration.utils.date_utils import now_iso
from ysa_registration.utils.validation import (
    format_record_number,
    normalize_phone,
    validate_registration,
)

logger = logging.getLogger(__name__)

STAGE_CLOSED = "closed"
STAGE_VALIDATION = "validation"
STAGE_DUPLICATE = "duplicate"
STAGE_PERSISTENCE = "persistence"
STAGE_ACCEPTED = "accepted"

MSG_SUBMITTED = "Registration successful"
MSG_CLOSED = "Registration is closed: all places have been taken"
MSG_UPDATED = "Registration updated"
MSG_DELETED = "Registration deleted"
MSG_PAID = "Marked as paid"
MSG_UNPAID = "Marked as unpaid"
MSG_MISSING_ID = "Registration has not been saved yet"


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of one public submission."""

    success: bool
    message: str
    stage: str
    record_id: Optional[str] = None
    outcome: Optional[WriteOutcome] = None


def registrations_router(stores: Stores) -> PersistenceRouter:
    """Router for the registrations collection with local uniqueness checks."""
    return PersistenceRouter(
        stores.remote,
        stores.cache,
        stores.registrations_collection,
        conflict_check=local_conflict_check,
    )


def clean_registration(registration: Registration) -> Registration:
    """Trim names and normalize phone and record number for storage."""
    return replace(
        registration,
        full_name=registration.full_name.strip(),
        english_name=registration.english_name.strip(),
        phone_number=normalize_phone(registration.phone_number),
        record_number=format_record_number(registration.record_number),
        other_reason=(registration.other_reason or "").strip(),
    )


def build_registration(form: Dict[str, Any]) -> Registration:
    """
    Turn validated form values into a new Registration.

    isPaid is forced to False and the creation timestamp is stamped here.
    """
    fields = {key: value for key, value in form.items() if key in Registration.__dataclass_fields__}
    fields.update(is_paid=False, timestamp=now_iso(), id=None)
    return clean_registration(Registration(**fields))


def submit_registration(form: Dict[str, Any], stores: Optional[Stores] = None) -> SubmissionResult:
    """
    Accept a public registration.

    Args:
        form: Form values keyed by Registration attribute names
        stores: Stores to use (defaults to the process-wide stores)

    Returns:
        SubmissionResult; stage tells which step decided the outcome

    Behavior:
        - Intake gate -> field validator -> duplicate resolver -> router
        - Stops at the first failing stage; nothing is written unless every
          stage passes
        - Check-then-write is not atomic: concurrent submissions can both
          pass the capacity and duplicate checks
    """
    stores = stores or get_stores()
    settings = stores.settings
    collection = stores.registrations_collection

    gate = check_registration_open(stores.remote, stores.cache, collection, settings.capacity)
    if not gate.is_open:
        return SubmissionResult(False, MSG_CLOSED, STAGE_CLOSED)

    is_valid, error_msg = validate_registration(form, settings.dob_min_year, settings.dob_max_year)
    if not is_valid:
        return SubmissionResult(False, error_msg, STAGE_VALIDATION)

    registration = build_registration(form)
    full_name, english_name = registration.name_pair()

    match = find_duplicate(
        stores.remote,
        stores.cache,
        collection,
        full_name,
        english_name,
        registration.record_number,
    )
    if match is not None:
        return SubmissionResult(False, match.message(), STAGE_DUPLICATE)

    result = registrations_router(stores).create(registration.to_dict())

    if result.outcome == WriteOutcome.CONFLICT:
        return SubmissionResult(False, result.message, STAGE_DUPLICATE)
    if not result.success:
        return SubmissionResult(False, result.message, STAGE_PERSISTENCE)

    logger.info(f"Registration {result.record_id} accepted ({result.outcome.value})")
    return SubmissionResult(True, MSG_SUBMITTED, STAGE_ACCEPTED, result.record_id, result.outcome)


def update_registration(registration: Registration, stores: Optional[Stores] = None) -> Tuple[bool, str]:
    """
    Replace a registration with edited values (admin only).

    Returns:
        Tuple of (success: bool, message: str)

    Behavior:
        - Same field rules as the public form
        - Uniqueness checked against every other record
        - id and timestamp are carried over unchanged
    """
    if not registration.id:
        return False, MSG_MISSING_ID

    stores = stores or get_stores()
    settings = stores.settings

    is_valid, error_msg = validate_registration(
        asdict(registration), settings.dob_min_year, settings.dob_max_year
    )
    if not is_valid:
        return False, error_msg

    cleaned = clean_registration(registration)
    full_name, english_name = cleaned.name_pair()

    match = find_duplicate(
        stores.remote,
        stores.cache,
        stores.registrations_collection,
        full_name,
        english_name,
        cleaned.record_number,
        exclude_id=cleaned.id,
    )
    if match is not None:
        return False, match.message()

    data = cleaned.to_dict()
    result = registrations_router(stores).update(cleaned.id, data, full_record=data)
    if not result.success:
        return False, result.message

    return True, MSG_UPDATED


def toggle_paid(registration: Registration, stores: Optional[Stores] = None) -> Tuple[bool, str]:
    """
    Flip isPaid on one registration; no other field is written.

    Returns:
        Tuple of (success: bool, message: str)
    """
    if not registration.id:
        return False, MSG_MISSING_ID

    stores = stores or get_stores()
    toggled = registration.with_paid(not registration.is_paid)

    result = registrations_router(stores).update(
        toggled.id,
        {"isPaid": toggled.is_paid},
        full_record=toggled.to_record(),
    )
    if not result.success:
        return False, result.message

    return True, MSG_PAID if toggled.is_paid else MSG_UNPAID


def delete_registration(record_id: str, stores: Optional[Stores] = None) -> Tuple[bool, str]:
    """
    Delete a registration immediately (admin only).

    Returns:
        Tuple of (success: bool, message: str)
    """
    stores = stores or get_stores()

    result = registrations_router(stores).delete(record_id)
    if not result.success:
        return False, result.message

    return True, MSG_DELETED
