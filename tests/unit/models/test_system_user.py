"""Unit tests for SystemUser and Role."""
import pytest

from ysa_registration.models.system_user import Role, SystemUser


class TestSystemUser:
    def test_role_string_is_coerced(self):
        user = SystemUser(username="dara", password="secret", role="admin")
        assert user.role is Role.ADMIN

    def test_empty_username_rejected(self):
        with pytest.raises(ValueError, match="Username cannot be empty"):
            SystemUser(username="  ", password="secret", role=Role.VIEWER)

    def test_empty_password_rejected(self):
        with pytest.raises(ValueError, match="Password cannot be empty"):
            SystemUser(username="dara", password="", role=Role.VIEWER)

    def test_unknown_role_rejected(self):
        with pytest.raises(ValueError):
            SystemUser(username="dara", password="secret", role="owner")

    def test_dict_round_trip(self):
        """Store keys are username/password/role/createdAt."""
        user = SystemUser("dara", "secret", Role.VIEWER, "2025-11-01T00:00:00+00:00")
        data = user.to_dict()

        assert data == {
            "username": "dara",
            "password": "secret",
            "role": "viewer",
            "createdAt": "2025-11-01T00:00:00+00:00",
        }
        assert SystemUser.from_dict(data, "u1") == user
        assert SystemUser.from_dict(data, "u1").id == "u1"
