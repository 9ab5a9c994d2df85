"""System user data model."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class Role(str, Enum):
    """Authorization level consumed by the dashboard."""

    ADMIN = "admin"
    VIEWER = "viewer"


@dataclass
class SystemUser:
    """Admin-managed login, distinct from the master accounts."""

    username: str
    password: str
    role: Role
    created_at: str = ""
    id: Optional[str] = field(default=None, compare=False)

    def __post_init__(self):
        """Validate user data after initialization."""
        if not self.username or not self.username.strip():
            raise ValueError("Username cannot be empty")

        if not self.password:
            raise ValueError("Password cannot be empty")

        self.role = Role(self.role)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], record_id: Optional[str] = None) -> "SystemUser":
        identifier = record_id if record_id is not None else data.get("id")
        return cls(
            username=data.get("username", ""),
            password=data.get("password", ""),
            role=data.get("role", Role.VIEWER.value),
            created_at=data.get("createdAt", ""),
            id=str(identifier) if identifier is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "password": self.password,
            "role": self.role.value,
            "createdAt": self.created_at,
        }
