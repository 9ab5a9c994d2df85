"""Registration data model for the event intake form."""
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

# Python attribute -> store key
FIELD_KEYS = {
    "full_name": "fullName",
    "english_name": "englishName",
    "dob": "dob",
    "gender": "gender",
    "t_shirt_size": "tShirtSize",
    "phone_number": "phoneNumber",
    "stake": "stake",
    "ward": "ward",
    "record_number": "recordNumber",
    "media_consent": "mediaConsent",
    "payment_status": "paymentStatus",
    "other_reason": "otherReason",
    "is_paid": "isPaid",
    "timestamp": "timestamp",
}

BOOLEAN_FIELDS = {"media_consent", "is_paid"}


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "yes", "1"}
    return bool(value)


@dataclass
class Registration:
    """One person's submission."""

    full_name: str = ""
    english_name: str = ""
    dob: str = ""
    gender: str = ""
    t_shirt_size: str = ""
    phone_number: str = ""
    stake: str = ""
    ward: str = ""
    record_number: str = ""
    media_consent: bool = False
    payment_status: str = ""
    other_reason: str = ""
    is_paid: bool = False
    timestamp: Optional[str] = None  # ISO 8601, set once at creation
    id: Optional[str] = field(default=None, compare=False)

    def __post_init__(self):
        """Validate timestamp format when present."""
        if self.timestamp:
            try:
                datetime.fromisoformat(self.timestamp.replace('Z', '+00:00'))
            except ValueError as e:
                raise ValueError(f"Invalid timestamp format: {self.timestamp}") from e

    @classmethod
    def from_dict(cls, data: Dict[str, Any], record_id: Optional[str] = None) -> "Registration":
        """
        Build a registration from its store representation.

        Args:
            data: Dictionary keyed by store field names (camelCase)
            record_id: Document ID; falls back to data["id"] for cached records

        Returns:
            Registration with missing fields defaulted
        """
        values = {}
        for attr, key in FIELD_KEYS.items():
            if key not in data or data[key] is None:
                continue
            value = data[key]
            if attr in BOOLEAN_FIELDS:
                value = _coerce_bool(value)
            elif attr != "timestamp":
                value = str(value)
            values[attr] = value

        identifier = record_id if record_id is not None else data.get("id")
        if identifier is not None:
            identifier = str(identifier)

        return cls(id=identifier, **values)

    def to_dict(self) -> Dict[str, Any]:
        """Store representation without the document ID."""
        return {key: getattr(self, attr) for attr, key in FIELD_KEYS.items()}

    def to_record(self) -> Dict[str, Any]:
        """Store representation including the ID, as kept in the local cache."""
        record = self.to_dict()
        record["id"] = self.id
        return record

    def name_pair(self) -> Tuple[str, str]:
        """Trimmed (fullName, englishName) pair used for uniqueness."""
        return self.full_name.strip(), self.english_name.strip()

    def with_paid(self, is_paid: bool) -> "Registration":
        """Copy with only the paid flag changed."""
        return replace(self, is_paid=is_paid)
