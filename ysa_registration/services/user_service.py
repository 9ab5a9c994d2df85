"""System user management (admin only)."""
import logging
from typing import Any, Dict, List, Optional, Tuple

from ysa_registration.models.system_user import Role, SystemUser
from ysa_registration.services.auth_service import is_master_username
from ysa_registration.services.persistence_router import (
    MSG_RETRY_LATER,
    PersistenceRouter,
    should_fall_back,
)
from ysa_registration.services.stores import Stores, get_stores
from ysa_registration.utils.date_utils import now_iso, timestamp_sort_key
from ysa_registration.utils.exceptions import StoreNotConfiguredError

logger = logging.getLogger(__name__)

MSG_USERNAME_REQUIRED = "Username and password are required"
MSG_USERNAME_TAKEN = "Username {username} already exists"
MSG_USER_CREATED = "User {username} created"
MSG_USER_DELETED = "User deleted"


def _username_conflict(
    items: List[Dict[str, Any]],
    candidate: Dict[str, Any],
    exclude_id: Optional[str],
) -> Optional[str]:
    username = candidate.get("username", "")
    for item in items:
        if item.get("username") == username and str(item.get("id")) != exclude_id:
            return MSG_USERNAME_TAKEN.format(username=username)
    return None


def users_router(stores: Stores) -> PersistenceRouter:
    return PersistenceRouter(
        stores.remote,
        stores.cache,
        stores.users_collection,
        conflict_check=_username_conflict,
    )


def list_users(stores: Optional[Stores] = None) -> List[SystemUser]:
    """
    All stored system users, newest first.

    Reads the remote store; config or permission failures read the local
    cache instead. Other failures return an empty list.
    """
    stores = stores or get_stores()
    collection = stores.users_collection

    try:
        if stores.remote is None:
            raise StoreNotConfiguredError("Database not configured")
        documents = stores.remote.find(collection, {})
    except Exception as error:
        if not should_fall_back(error):
            logger.error(f"Failed to list users: {error}")
            return []
        try:
            documents = [(item.get("id"), item) for item in stores.cache.read_all(collection)]
        except (IOError, TimeoutError) as e:
            logger.error(f"Failed to list users from local cache: {e}")
            return []

    users = []
    for doc_id, data in documents:
        try:
            users.append(SystemUser.from_dict(data, doc_id))
        except ValueError as e:
            logger.warning(f"Skipping malformed user {doc_id}: {e}")

    return sorted(users, key=lambda u: timestamp_sort_key(u.created_at), reverse=True)


def create_user(username: str, password: str, role: Role, stores: Optional[Stores] = None) -> Tuple[bool, str]:
    """
    Create a system user.

    Returns:
        Tuple of (success: bool, message: str)

    Behavior:
        - Rejects blank credentials
        - Rejects master usernames and usernames already stored
    """
    username = (username or "").strip()
    if not username or not password:
        return False, MSG_USERNAME_REQUIRED

    stores = stores or get_stores()

    if is_master_username(username, stores.settings):
        return False, MSG_USERNAME_TAKEN.format(username=username)

    if any(user.username == username for user in list_users(stores)):
        return False, MSG_USERNAME_TAKEN.format(username=username)

    user = SystemUser(username=username, password=password, role=role, created_at=now_iso())
    result = users_router(stores).create(user.to_dict())
    if not result.success:
        return False, result.message or MSG_RETRY_LATER

    return True, MSG_USER_CREATED.format(username=username)


def delete_user(user_id: str, stores: Optional[Stores] = None) -> Tuple[bool, str]:
    """Delete a stored system user. Master accounts are not stored and can't be deleted."""
    stores = stores or get_stores()

    result = users_router(stores).delete(user_id)
    if not result.success:
        return False, result.message

    return True, MSG_USER_DELETED
