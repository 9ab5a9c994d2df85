"""Unit tests for the capacity gate."""
import pytest

from ysa_registration.services.intake_gate import (
    GateStatus,
    check_registration_open,
    get_registration_count,
)

COLLECTION = "ysa_registrations"


def _fill_remote(remote, count):
    for i in range(count):
        remote.add(COLLECTION, {"fullName": f"n{i}"})


class TestGetRegistrationCount:
    def test_remote_count(self, remote, cache):
        _fill_remote(remote, 3)
        assert get_registration_count(remote, cache, COLLECTION) == 3

    def test_permission_denied_counts_cache(self, remote, cache):
        remote.mode = "deny"
        cache.write_all(COLLECTION, [{"id": "local_1"}, {"id": "local_2"}])

        assert get_registration_count(remote, cache, COLLECTION) == 2

    def test_not_configured_counts_cache(self, cache):
        cache.write_all(COLLECTION, [{"id": "local_1"}])
        assert get_registration_count(None, cache, COLLECTION) == 1

    def test_other_error_raises(self, remote, cache):
        remote.mode = "fail"
        with pytest.raises(Exception, match="deadline exceeded"):
            get_registration_count(remote, cache, COLLECTION)


class TestCheckRegistrationOpen:
    """Test the open/closed decision."""

    def test_open_below_capacity(self, remote, cache):
        _fill_remote(remote, 4)
        status = check_registration_open(remote, cache, COLLECTION, 5)

        assert status == GateStatus(is_open=True, count=4, capacity=5)
        assert status.remaining == 1

    def test_closed_at_capacity(self, remote, cache):
        _fill_remote(remote, 5)
        status = check_registration_open(remote, cache, COLLECTION, 5)

        assert status.is_open is False
        assert status.remaining == 0

    def test_closed_above_capacity(self, remote, cache):
        _fill_remote(remote, 7)
        assert check_registration_open(remote, cache, COLLECTION, 5).remaining == 0

    def test_fails_open_on_count_error(self, remote, cache):
        remote.mode = "fail"
        status = check_registration_open(remote, cache, COLLECTION, 5)

        assert status.is_open is True
        assert status.degraded is True
        assert status.count is None
        assert status.remaining is None
