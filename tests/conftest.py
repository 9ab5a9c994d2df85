"""Shared fixtures: an in-memory remote store and per-test local cache."""
import itertools
from typing import Any, Dict, List, Optional

import pytest

from ysa_registration.config import Settings
from ysa_registration.services import stores as stores_module
from ysa_registration.services.local_cache import LocalCache
from ysa_registration.services.remote_store import RemoteStore, Subscription
from ysa_registration.services.stores import Stores
from ysa_registration.utils.date_utils import timestamp_sort_key
from ysa_registration.utils.exceptions import (
    RecordNotFoundError,
    StoreError,
    StorePermissionError,
)

MODE_OK = "ok"
MODE_DENY = "deny"
MODE_FAIL = "fail"


class FakeRemoteStore(RemoteStore):
    """
    Dict-backed RemoteStore.

    Set `mode` to "deny" to raise permission errors or "fail" to raise a
    generic StoreError from every call.
    """

    def __init__(self):
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.mode = MODE_OK
        self.subscriptions: List[Subscription] = []
        self.listeners: List[tuple] = []
        self._ids = itertools.count(1)

    def _check(self) -> None:
        if self.mode == MODE_DENY:
            raise StorePermissionError("permission-denied: Missing or insufficient permissions")
        if self.mode == MODE_FAIL:
            raise StoreError("deadline exceeded")

    def docs(self, collection: str) -> Dict[str, Dict[str, Any]]:
        return self.collections.setdefault(collection, {})

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        self._check()
        doc_id = f"doc{next(self._ids)}"
        self.docs(collection)[doc_id] = dict(data)
        self._notify(collection)
        return doc_id

    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        self._check()
        if doc_id not in self.docs(collection):
            raise RecordNotFoundError(f"No document {doc_id}")
        self.docs(collection)[doc_id].update(data)
        self._notify(collection)

    def delete(self, collection: str, doc_id: str) -> None:
        self._check()
        self.docs(collection).pop(doc_id, None)
        self._notify(collection)

    def find(self, collection: str, filters: Dict[str, Any], limit: Optional[int] = None) -> List[tuple]:
        self._check()
        results = [
            (doc_id, dict(data))
            for doc_id, data in self.docs(collection).items()
            if all(data.get(key) == value for key, value in filters.items())
        ]
        return results[:limit] if limit is not None else results

    def count(self, collection: str) -> int:
        self._check()
        return len(self.docs(collection))

    def subscribe(self, collection, order_by, descending, on_change) -> Subscription:
        self._check()
        listener = (collection, order_by, descending, on_change)
        self.listeners.append(listener)
        on_change(self._ordered(collection, order_by, descending))

        subscription = Subscription(cancel=lambda: self.listeners.remove(listener))
        self.subscriptions.append(subscription)
        return subscription

    def _ordered(self, collection: str, order_by: str, descending: bool) -> List[tuple]:
        items = [(doc_id, dict(data)) for doc_id, data in self.docs(collection).items()]
        return sorted(items, key=lambda item: timestamp_sort_key(item[1].get(order_by)), reverse=descending)

    def _notify(self, collection: str) -> None:
        for listener_collection, order_by, descending, on_change in list(self.listeners):
            if listener_collection == collection:
                on_change(self._ordered(collection, order_by, descending))


@pytest.fixture
def remote():
    return FakeRemoteStore()


@pytest.fixture
def cache(tmp_path):
    return LocalCache(str(tmp_path / "local_cache.json"))


@pytest.fixture
def settings(tmp_path):
    return Settings(capacity=5, local_cache_file=str(tmp_path / "local_cache.json"))


@pytest.fixture
def stores(remote, cache, settings):
    """Stores wired to the fake remote and a temp cache, also returned by get_stores()."""
    bundle = Stores(remote=remote, cache=cache, settings=settings)
    stores_module._stores_cache = bundle
    yield bundle
    stores_module._clear_cache()


@pytest.fixture
def offline_stores(cache, settings):
    """Stores with no remote configured."""
    bundle = Stores(remote=None, cache=cache, settings=settings)
    stores_module._stores_cache = bundle
    yield bundle
    stores_module._clear_cache()


@pytest.fixture
def valid_form():
    """Form values that pass every rule."""
    return {
        "full_name": "សុខ សុភា",
        "english_name": "Sok Sophea",
        "dob": "2000-05-17",
        "gender": "ស្រី",
        "t_shirt_size": "M",
        "phone_number": "012 345 678",
        "stake": "ស្តេកខាងត្បូង",
        "ward": "វួដទួលទំពូង",
        "record_number": "",
        "media_consent": True,
        "payment_status": "agree",
        "other_reason": "",
    }
