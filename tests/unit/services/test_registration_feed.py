"""Unit tests for the dashboard registration feed."""
from ysa_registration.services.persistence_router import MSG_RETRY_LATER
from ysa_registration.services.registration_feed import (
    MODE_CLOSED,
    MODE_LOCAL,
    MODE_REMOTE,
    RegistrationFeed,
    sort_newest_first,
    to_registrations,
)

COLLECTION = "ysa_registrations"


def _doc(name, timestamp):
    return {"fullName": name, "englishName": name, "timestamp": timestamp}


class TestHelpers:
    def test_malformed_records_are_skipped(self):
        documents = [("a", _doc("ក", "2025-11-01T00:00:00Z")), ("b", _doc("ខ", "garbage"))]
        registrations = to_registrations(documents)

        assert [r.id for r in registrations] == ["a"]

    def test_sort_newest_first(self):
        registrations = to_registrations([
            ("old", _doc("ក", "2025-11-01T00:00:00Z")),
            ("new", _doc("ខ", "2025-11-03T00:00:00Z")),
            ("mid", _doc("គ", "2025-11-02T00:00:00Z")),
        ])
        assert [r.id for r in sort_newest_first(registrations)] == ["new", "mid", "old"]


class TestRemoteFeed:
    """Test the live subscription path."""

    def test_start_delivers_initial_snapshot(self, remote, cache):
        remote.add(COLLECTION, _doc("ក", "2025-11-01T00:00:00Z"))
        remote.add(COLLECTION, _doc("ខ", "2025-11-02T00:00:00Z"))

        feed = RegistrationFeed(remote, cache, COLLECTION)
        feed.start()

        assert feed.mode == MODE_REMOTE
        assert [r.full_name for r in feed.snapshot()] == ["ខ", "ក"]

    def test_changes_replace_whole_list(self, remote, cache):
        feed = RegistrationFeed(remote, cache, COLLECTION)
        feed.start()
        doc_id = remote.add(COLLECTION, _doc("ក", "2025-11-01T00:00:00Z"))
        remote.add(COLLECTION, _doc("ខ", "2025-11-02T00:00:00Z"))
        remote.delete(COLLECTION, doc_id)

        assert [r.full_name for r in feed.snapshot()] == ["ខ"]

    def test_start_is_idempotent(self, remote, cache):
        feed = RegistrationFeed(remote, cache, COLLECTION)
        feed.start()
        feed.start()

        assert len(remote.subscriptions) == 1

    def test_close_releases_subscription(self, remote, cache):
        feed = RegistrationFeed(remote, cache, COLLECTION)
        feed.start()
        feed.close()

        assert feed.mode == MODE_CLOSED
        assert remote.subscriptions[0].active is False
        assert remote.listeners == []

    def test_other_error_sets_message(self, remote, cache):
        remote.mode = "fail"
        feed = RegistrationFeed(remote, cache, COLLECTION)
        feed.start()

        assert feed.error == MSG_RETRY_LATER
        assert feed.snapshot() == []


class TestLocalFeed:
    """Test the degraded path that reads the cache."""

    def test_permission_denied_switches_to_cache(self, remote, cache):
        remote.mode = "deny"
        cache.write_all(COLLECTION, [
            {**_doc("ក", "2025-11-01T00:00:00Z"), "id": "local_1"},
            {**_doc("ខ", "2025-11-02T00:00:00Z"), "id": "local_2"},
        ])

        feed = RegistrationFeed(remote, cache, COLLECTION)
        feed.start()

        assert feed.mode == MODE_LOCAL
        assert feed.is_degraded
        assert [r.id for r in feed.snapshot()] == ["local_2", "local_1"]

    def test_local_mode_sticks(self, remote, cache):
        """Once degraded, the remote store is not consulted again."""
        remote.mode = "deny"
        feed = RegistrationFeed(remote, cache, COLLECTION)
        feed.start()
        remote.mode = "ok"
        feed.start()

        assert feed.mode == MODE_LOCAL
        assert remote.subscriptions == []

    def test_snapshot_rereads_cache(self, cache):
        feed = RegistrationFeed(None, cache, COLLECTION)
        feed.start()
        assert feed.snapshot() == []

        cache.write_all(COLLECTION, [{**_doc("ក", "2025-11-01T00:00:00Z"), "id": "local_1"}])
        assert [r.id for r in feed.snapshot()] == ["local_1"]
