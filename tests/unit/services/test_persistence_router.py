"""Unit tests for the persistence router."""
import threading
import time
from unittest.mock import patch

import pytest

from ysa_registration.services.duplicate_resolver import local_conflict_check
from ysa_registration.services.persistence_router import (
    ERROR_CONFIG,
    ERROR_OTHER,
    ERROR_PERMISSION,
    MSG_RETRY_LATER,
    PersistenceRouter,
    WriteOutcome,
    classify_store_error,
    new_local_id,
    should_fall_back,
)
from ysa_registration.utils.exceptions import (
    StoreError,
    StoreNotConfiguredError,
    StorePermissionError,
)

COLLECTION = "ysa_registrations"


@pytest.fixture
def router(remote, cache):
    return PersistenceRouter(remote, cache, COLLECTION, conflict_check=local_conflict_check)


class TestClassifyStoreError:
    """Test the fallback error taxonomy."""

    def test_config_errors(self):
        assert classify_store_error(StoreNotConfiguredError("x")) == ERROR_CONFIG
        assert classify_store_error(RuntimeError("Database not configured")) == ERROR_CONFIG

    def test_permission_errors(self):
        assert classify_store_error(StorePermissionError("x")) == ERROR_PERMISSION
        assert classify_store_error(Exception("permission-denied")) == ERROR_PERMISSION
        assert classify_store_error(Exception("Missing or insufficient permissions.")) == ERROR_PERMISSION

    def test_other_errors_do_not_fall_back(self):
        error = StoreError("deadline exceeded")
        assert classify_store_error(error) == ERROR_OTHER
        assert should_fall_back(error) is False


class TestNewLocalId:
    def test_format(self):
        with patch("ysa_registration.services.persistence_router.time.time", return_value=1700000000.123):
            assert new_local_id() == "local_1700000000123"

    def test_skips_taken_ids(self):
        with patch("ysa_registration.services.persistence_router.time.time", return_value=1700000000.123):
            assert new_local_id(["local_1700000000123"]) == "local_1700000000124"


class TestCreate:
    """Test remote-first create with local fallback."""

    def test_remote_success(self, router, remote, cache):
        result = router.create({"fullName": "សុខ", "englishName": "Sok"})

        assert result.outcome == WriteOutcome.REMOTE
        assert result.success
        assert result.record_id in remote.docs(COLLECTION)
        assert cache.read_all(COLLECTION) == []

    def test_permission_denied_falls_back_to_cache(self, router, remote, cache):
        remote.mode = "deny"
        result = router.create({"fullName": "សុខ", "englishName": "Sok"})

        assert result.outcome == WriteOutcome.LOCAL
        assert result.record_id.startswith("local_")
        assert remote.docs(COLLECTION) == {}
        assert cache.read_all(COLLECTION) == [
            {"fullName": "សុខ", "englishName": "Sok", "id": result.record_id}
        ]

    def test_no_remote_falls_back_to_cache(self, cache):
        router = PersistenceRouter(None, cache, COLLECTION)
        result = router.create({"fullName": "សុខ"})

        assert result.outcome == WriteOutcome.LOCAL
        assert len(cache.read_all(COLLECTION)) == 1

    def test_other_error_fails_without_writing(self, router, remote, cache):
        remote.mode = "fail"
        result = router.create({"fullName": "សុខ"})

        assert result.outcome == WriteOutcome.FAILED
        assert result.message == MSG_RETRY_LATER
        assert not result.success
        assert cache.read_all(COLLECTION) == []

    def test_local_conflict_detected_under_lock(self, router, remote, cache):
        remote.mode = "deny"
        cache.write_all(COLLECTION, [{"id": "local_1", "fullName": "សុខ", "englishName": "Sok"}])

        result = router.create({"fullName": "សុខ", "englishName": "Sok"})

        assert result.outcome == WriteOutcome.CONFLICT
        assert "already exists" in result.message
        assert len(cache.read_all(COLLECTION)) == 1

    def test_two_local_creates_get_distinct_ids(self, router, remote):
        remote.mode = "deny"
        first = router.create({"fullName": "ក", "englishName": "A"})
        second = router.create({"fullName": "ខ", "englishName": "B"})

        assert first.record_id != second.record_id

    def test_concurrent_local_creates_both_stored(self, cache):
        """Two sessions writing offline at once both land in the cache."""
        offline = PersistenceRouter(None, cache, COLLECTION, conflict_check=local_conflict_check)
        original_read = cache.read_all
        results = []

        def slow_read(slot):
            items = original_read(slot)
            time.sleep(0.05)
            return items

        def create(name, english):
            results.append(offline.create({"fullName": name, "englishName": english}))

        with patch.object(cache, "read_all", side_effect=slow_read):
            threads = [
                threading.Thread(target=create, args=("ក", "A")),
                threading.Thread(target=create, args=("ខ", "B")),
            ]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join(timeout=5)

        assert [r.outcome for r in results] == [WriteOutcome.LOCAL, WriteOutcome.LOCAL]
        assert sorted(item["englishName"] for item in cache.read_all(COLLECTION)) == ["A", "B"]

    def test_concurrent_duplicate_creates_keep_one(self, cache):
        """The in-lock uniqueness check sees the other thread's write."""
        offline = PersistenceRouter(None, cache, COLLECTION, conflict_check=local_conflict_check)
        original_read = cache.read_all
        results = []

        def slow_read(slot):
            items = original_read(slot)
            time.sleep(0.05)
            return items

        def create():
            results.append(offline.create({"fullName": "សុខ", "englishName": "Sok"}))

        with patch.object(cache, "read_all", side_effect=slow_read):
            threads = [threading.Thread(target=create) for _ in range(2)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join(timeout=5)

        assert sorted(r.outcome.value for r in results) == sorted(
            [WriteOutcome.LOCAL.value, WriteOutcome.CONFLICT.value]
        )
        assert len(cache.read_all(COLLECTION)) == 1

    def test_local_write_failure(self, router, remote, cache):
        remote.mode = "deny"
        with patch.object(cache, "write_all", side_effect=IOError("disk full")):
            result = router.create({"fullName": "សុខ"})

        assert result.outcome == WriteOutcome.FAILED
        assert result.message == MSG_RETRY_LATER


class TestUpdate:
    def test_remote_update(self, router, remote):
        doc_id = remote.add(COLLECTION, {"fullName": "សុខ", "isPaid": False})
        result = router.update(doc_id, {"isPaid": True})

        assert result.outcome == WriteOutcome.REMOTE
        assert remote.docs(COLLECTION)[doc_id] == {"fullName": "សុខ", "isPaid": True}

    def test_local_update_merges_changes(self, router, remote, cache):
        remote.mode = "deny"
        cache.write_all(COLLECTION, [{"id": "local_1", "fullName": "សុខ", "isPaid": False}])

        result = router.update("local_1", {"isPaid": True})

        assert result.outcome == WriteOutcome.LOCAL
        assert cache.read_all(COLLECTION) == [{"id": "local_1", "fullName": "សុខ", "isPaid": True}]

    def test_local_update_seeds_missing_record(self, router, remote, cache):
        remote.mode = "deny"
        result = router.update("doc9", {"isPaid": True}, full_record={"fullName": "សុខ", "isPaid": False})

        assert result.outcome == WriteOutcome.LOCAL
        assert cache.read_all(COLLECTION) == [{"fullName": "សុខ", "isPaid": True, "id": "doc9"}]

    def test_local_update_missing_record_without_full_record_fails(self, router, remote):
        remote.mode = "deny"
        result = router.update("doc9", {"isPaid": True})

        assert result.outcome == WriteOutcome.FAILED


class TestDelete:
    def test_remote_delete(self, router, remote):
        doc_id = remote.add(COLLECTION, {"fullName": "សុខ"})
        assert router.delete(doc_id).outcome == WriteOutcome.REMOTE
        assert remote.docs(COLLECTION) == {}

    def test_local_delete(self, router, remote, cache):
        remote.mode = "deny"
        cache.write_all(COLLECTION, [{"id": "local_1"}, {"id": "local_2"}])

        assert router.delete("local_1").outcome == WriteOutcome.LOCAL
        assert cache.read_all(COLLECTION) == [{"id": "local_2"}]
