"""Registration field validation utilities."""
import re
from datetime import datetime
from typing import Any, Dict, Tuple

from ysa_registration.models.locations import (
    GENDERS,
    LOCATIONS,
    PAYMENT_OTHER,
    PAYMENT_STATUSES,
    T_SHIRT_SIZES,
)

KHMER_PATTERN = re.compile(r"[\u1780-\u17FF\s]*")
PHONE_PATTERN = re.compile(r"0[0-9]{7,9}")
RECORD_NUMBER_PATTERN = re.compile(r"[A-Z0-9]{11}")
RECORD_NUMBER_LENGTH = 11
RECORD_NUMBER_GROUPS = (3, 4, 4)
RECORD_NUMBER_SEPARATOR = "-"

MSG_REQUIRED = "Please fill in: {field}"
MSG_MEDIA_CONSENT = "You must agree to photo and video use to register"
MSG_KHMER_ONLY = "Full name must be written in Khmer script only"
MSG_DOB_FORMAT = "Date of birth must be in YYYY-MM-DD format"
MSG_DOB_RANGE = "Year of birth must be between {min_year} and {max_year}"
MSG_PHONE_FORMAT = "Phone number must start with 0 and have 8 to 10 digits"
MSG_RECORD_NUMBER = "Membership record number must have 11 letters or digits (e.g. 000-1234-567A)"
MSG_OTHER_REASON = "Please explain your payment situation"
MSG_PAYMENT_STATUS = "Please choose a payment option"
MSG_WARD = "Please choose a ward or branch that belongs to the selected stake"

REQUIRED_FIELDS = [
    ("full_name", "Full name (Khmer)"),
    ("english_name", "Full name (English)"),
    ("dob", "Date of birth"),
    ("gender", "Gender"),
    ("t_shirt_size", "T-shirt size"),
    ("phone_number", "Phone number"),
    ("stake", "Stake or district"),
    ("ward", "Ward or branch"),
    ("payment_status", "Payment"),
]


def is_khmer_text(value: str) -> bool:
    """True if value holds only Khmer-block characters and whitespace."""
    return bool(KHMER_PATTERN.fullmatch(value or ""))


def filter_khmer_input(previous: str, candidate: str) -> str:
    """
    Keystroke-level filter for the Khmer name field.

    Args:
        previous: Value before the edit
        candidate: Value after the edit

    Returns:
        candidate if it is Khmer script only, otherwise previous
        (the input simply does not change)
    """
    if is_khmer_text(candidate):
        return candidate
    return previous


def filter_phone_input(value: str) -> str:
    """Keep digits and spaces only."""
    return "".join(ch for ch in (value or "") if ch in "0123456789 ")


def normalize_phone(value: str) -> str:
    """Strip spaces from a phone number."""
    return (value or "").replace(" ", "")


def validate_phone(value: str) -> Tuple[bool, str]:
    """
    Validate phone number after stripping spaces.

    Returns:
        (True, "") if it matches ^0\\d{7,9}$
        (False, MSG_PHONE_FORMAT) otherwise
    """
    if PHONE_PATTERN.fullmatch(normalize_phone(value)):
        return True, ""
    return False, MSG_PHONE_FORMAT


def normalize_record_number(value: str) -> str:
    """
    Uppercase a membership record number and drop separators.

    Example: " 000-1234-567a " -> "0001234567A"
    """
    return re.sub(r"[^A-Za-z0-9]", "", value or "").upper()


def format_record_number(value: str) -> str:
    """
    Group a record number as 3-4-4 with dashes, uppercased and capped at
    11 significant characters.

    Works on partial input too, so it doubles as the live formatter:
    "00012" -> "000-12".
    """
    raw = normalize_record_number(value)[:RECORD_NUMBER_LENGTH]
    parts = []
    position = 0
    for size in RECORD_NUMBER_GROUPS:
        chunk = raw[position:position + size]
        if not chunk:
            break
        parts.append(chunk)
        position += size
    return RECORD_NUMBER_SEPARATOR.join(parts)


def validate_record_number(value: str) -> Tuple[bool, str]:
    """
    Validate an optional membership record number.

    Returns:
        (True, "") if empty or exactly 11 characters of [A-Z0-9] once
        separators are removed, (False, MSG_RECORD_NUMBER) otherwise
    """
    if not value or not value.strip():
        return True, ""

    if RECORD_NUMBER_PATTERN.fullmatch(normalize_record_number(value)):
        return True, ""
    return False, MSG_RECORD_NUMBER


def validate_dob(dob: str, min_year: int, max_year: int) -> Tuple[bool, str]:
    """
    Validate date of birth.

    Args:
        dob: Date in YYYY-MM-DD format
        min_year: Earliest allowed year (inclusive)
        max_year: Latest allowed year (inclusive)

    Returns:
        Tuple of (is_valid: bool, error_message: str)
    """
    if not isinstance(dob, str) or not re.fullmatch(r"\d{4}-\d{2}-\d{2}", dob):
        return False, MSG_DOB_FORMAT

    try:
        parsed = datetime.strptime(dob, "%Y-%m-%d")
    except ValueError:
        return False, MSG_DOB_FORMAT

    if not min_year <= parsed.year <= max_year:
        return False, MSG_DOB_RANGE.format(min_year=min_year, max_year=max_year)

    return True, ""


def validate_payment(payment_status: str, other_reason: str) -> Tuple[bool, str]:
    """otherReason is required only when payment status is 'other'."""
    if payment_status not in PAYMENT_STATUSES:
        return False, MSG_PAYMENT_STATUS
    if payment_status == PAYMENT_OTHER and not (other_reason or "").strip():
        return False, MSG_OTHER_REASON
    return True, ""


def validate_ward(stake: str, ward: str) -> Tuple[bool, str]:
    """Ward must be listed under the chosen stake."""
    if ward and ward in LOCATIONS.get(stake, []):
        return True, ""
    return False, MSG_WARD


def validate_required_fields(form: Dict[str, Any]) -> Tuple[bool, str]:
    """
    Check required fields, enumerations and media consent.

    Args:
        form: Dictionary keyed by Registration attribute names

    Returns:
        Tuple of (is_valid: bool, error_message: str)
    """
    for key, label in REQUIRED_FIELDS:
        value = form.get(key)
        if value is None or not str(value).strip():
            return False, MSG_REQUIRED.format(field=label)

    if not is_khmer_text(form["full_name"]):
        return False, MSG_KHMER_ONLY

    if form["gender"] not in GENDERS:
        return False, MSG_REQUIRED.format(field="Gender")

    if form["t_shirt_size"] not in T_SHIRT_SIZES:
        return False, MSG_REQUIRED.format(field="T-shirt size")

    if form.get("media_consent") is not True:
        return False, MSG_MEDIA_CONSENT

    return True, ""


def validate_registration(form: Dict[str, Any], min_year: int, max_year: int) -> Tuple[bool, str]:
    """
    Run every submission rule in a fixed order; the first failure wins.

    Order: required fields, date of birth, phone, membership code,
    payment reason, ward.

    Returns:
        Tuple of (is_valid: bool, error_message: str)
    """
    checks = (
        lambda: validate_required_fields(form),
        lambda: validate_dob(form.get("dob", ""), min_year, max_year),
        lambda: validate_phone(form.get("phone_number", "")),
        lambda: validate_record_number(form.get("record_number", "")),
        lambda: validate_payment(form.get("payment_status", ""), form.get("other_reason", "")),
        lambda: validate_ward(form.get("stake", ""), form.get("ward", "")),
    )

    for check in checks:
        is_valid, error_msg = check()
        if not is_valid:
            return False, error_msg

    return True, ""
