"""Remote document store access (Firestore)."""
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional, Tuple

from google.api_core import exceptions as google_exceptions
from google.auth.exceptions import DefaultCredentialsError
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from google.oauth2 import service_account

from ysa_registration.config import Settings, get_settings
from ysa_registration.utils.exceptions import (
    RecordNotFoundError,
    StoreError,
    StoreNotConfiguredError,
    StorePermissionError,
)

logger = logging.getLogger(__name__)

# (document id, document data)
Document = Tuple[str, Dict[str, Any]]
SnapshotCallback = Callable[[List[Document]], None]


class Subscription:
    """Handle for a live query; call unsubscribe() to stop updates."""

    def __init__(self, cancel: Optional[Callable[[], None]] = None):
        self._cancel = cancel
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        if self._cancel is not None:
            self._cancel()


class RemoteStore(ABC):
    """
    Operations the registration flow needs from the document store.

    Implementations raise StoreNotConfiguredError, StorePermissionError,
    RecordNotFoundError or StoreError; never library-specific exceptions.
    """

    @abstractmethod
    def add(self, collection: str, data: Dict[str, Any]) -> str:
        """Insert one document and return its generated ID."""

    @abstractmethod
    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Update fields of an existing document."""

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None:
        """Delete one document by ID."""

    @abstractmethod
    def find(self, collection: str, filters: Dict[str, Any], limit: Optional[int] = None) -> List[Document]:
        """Exact-match query on every field in filters."""

    @abstractmethod
    def count(self, collection: str) -> int:
        """Number of documents in a collection."""

    @abstractmethod
    def subscribe(
        self,
        collection: str,
        order_by: str,
        descending: bool,
        on_change: SnapshotCallback,
    ) -> Subscription:
        """
        Deliver the full ordered result set now and on every change.

        Errors opening the subscription are raised from this call.
        """


@contextmanager
def _translate_errors(operation: str):
    """Map google-cloud errors onto the package's store exceptions."""
    try:
        yield
    except (google_exceptions.PermissionDenied, google_exceptions.Unauthenticated) as e:
        raise StorePermissionError(f"{operation}: permission-denied: {e}") from e
    except google_exceptions.NotFound as e:
        raise RecordNotFoundError(f"{operation}: {e}") from e
    except DefaultCredentialsError as e:
        raise StoreNotConfiguredError(f"{operation}: Database not configured: {e}") from e
    except google_exceptions.GoogleAPIError as e:
        raise StoreError(f"{operation}: {e}") from e


class FirestoreRemoteStore(RemoteStore):
    """RemoteStore backed by google-cloud-firestore."""

    def __init__(self, client: firestore.Client):
        self._client = client

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        with _translate_errors(f"add to {collection}"):
            _, doc_ref = self._client.collection(collection).add(data)
        return doc_ref.id

    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        with _translate_errors(f"update {collection}/{doc_id}"):
            self._client.collection(collection).document(doc_id).update(data)

    def delete(self, collection: str, doc_id: str) -> None:
        with _translate_errors(f"delete {collection}/{doc_id}"):
            self._client.collection(collection).document(doc_id).delete()

    def find(self, collection: str, filters: Dict[str, Any], limit: Optional[int] = None) -> List[Document]:
        query = self._client.collection(collection)
        for field_name, value in filters.items():
            query = query.where(filter=FieldFilter(field_name, "==", value))
        if limit is not None:
            query = query.limit(limit)

        with _translate_errors(f"query {collection}"):
            return [(snap.id, snap.to_dict() or {}) for snap in query.stream()]

    def count(self, collection: str) -> int:
        with _translate_errors(f"count {collection}"):
            results = self._client.collection(collection).count().get()
        return int(results[0][0].value)

    def subscribe(
        self,
        collection: str,
        order_by: str,
        descending: bool,
        on_change: SnapshotCallback,
    ) -> Subscription:
        direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
        query = self._client.collection(collection).order_by(order_by, direction=direction)

        # The listener thread only logs stream errors, so a first read
        # surfaces permission problems to the caller.
        with _translate_errors(f"subscribe {collection}"):
            initial = [(snap.id, snap.to_dict() or {}) for snap in query.get()]
        on_change(initial)

        def _on_snapshot(docs, changes, read_time):
            on_change([(snap.id, snap.to_dict() or {}) for snap in docs])

        with _translate_errors(f"subscribe {collection}"):
            watch = query.on_snapshot(_on_snapshot)

        return Subscription(cancel=watch.unsubscribe)


def get_remote_store(settings: Optional[Settings] = None) -> Optional[RemoteStore]:
    """
    Build the Firestore store from settings.

    Returns:
        FirestoreRemoteStore, or None when no project is configured or the
        client can't be created (treated as "store not configured")
    """
    settings = settings or get_settings()

    if not settings.remote_configured:
        logger.warning("FIRESTORE_PROJECT_ID not set; remote store disabled")
        return None

    try:
        if settings.firestore_credentials_file:
            credentials = service_account.Credentials.from_service_account_file(
                settings.firestore_credentials_file
            )
            client = firestore.Client(project=settings.firestore_project_id, credentials=credentials)
        else:
            client = firestore.Client(project=settings.firestore_project_id)
    except (DefaultCredentialsError, OSError, ValueError) as e:
        logger.warning(f"Firestore initialization failed: {e}")
        return None

    return FirestoreRemoteStore(client)
