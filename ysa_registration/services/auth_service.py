"""Authentication and dashboard session state."""
import logging
from typing import Optional, Tuple

import streamlit as st

from ysa_registration.config import Settings
from ysa_registration.models.system_user import Role, SystemUser
from ysa_registration.services.persistence_router import should_fall_back
from ysa_registration.services.stores import Stores, get_stores
from ysa_registration.utils.exceptions import StoreNotConfiguredError

logger = logging.getLogger(__name__)

SESSION_ROLE_KEY = "auth_role"
SESSION_USERNAME_KEY = "auth_username"
SESSION_FEED_KEY = "dashboard_feed"

MSG_LOGIN_OK = "Logged in"
MSG_LOGIN_FAILED = "ឈ្មោះគណនី ឬលេខសម្ងាត់មិនត្រឹមត្រូវ"


def master_accounts(settings: Settings) -> dict:
    """Fixed identities: username -> (password, role). Never stored."""
    accounts = {}
    if settings.admin_username and settings.admin_password:
        accounts[settings.admin_username] = (settings.admin_password, Role.ADMIN)
    if settings.viewer_username and settings.viewer_password:
        accounts[settings.viewer_username] = (settings.viewer_password, Role.VIEWER)
    return accounts


def is_master_username(username: str, settings: Settings) -> bool:
    return username in master_accounts(settings)


def _lookup_system_user(username: str, password: str, stores: Stores) -> Optional[SystemUser]:
    """Exact username+password match, remote first, local cache on fallback."""
    filters = {"username": username, "password": password}
    collection = stores.users_collection

    try:
        if stores.remote is None:
            raise StoreNotConfiguredError("Database not configured")
        documents = stores.remote.find(collection, filters, limit=1)
        return SystemUser.from_dict(documents[0][1], documents[0][0]) if documents else None
    except Exception as error:
        if not should_fall_back(error):
            logger.error(f"User lookup failed: {error}")
            return None
        logger.warning(f"Looking up user in local cache: {error}")

    try:
        items = stores.cache.read_all(collection)
    except (IOError, TimeoutError) as e:
        logger.error(f"User lookup in local cache failed: {e}")
        return None

    for item in items:
        if item.get("username") == username and item.get("password") == password:
            return SystemUser.from_dict(item)
    return None


def authenticate(username: str, password: str, stores: Optional[Stores] = None) -> Optional[Role]:
    """
    Authenticate against master accounts, then stored system users.

    Args:
        username: Login name
        password: Plain-text password

    Returns:
        Role on success, None otherwise

    Security:
        - Plain-text comparison, as the stored user records hold plain text
        - No timing attack protection
    """
    if not username or not password:
        return None

    stores = stores or get_stores()

    master = master_accounts(stores.settings).get(username)
    if master is not None:
        return master[1] if master[0] == password else None

    user = _lookup_system_user(username, password, stores)
    return user.role if user else None


def current_role() -> Optional[Role]:
    """Role of the logged-in user, None when logged out."""
    role = st.session_state.get(SESSION_ROLE_KEY)
    return Role(role) if role else None


def is_authenticated() -> bool:
    return current_role() is not None


def is_admin() -> bool:
    """Admin unlocks edit, delete, payment toggle and user management."""
    return current_role() == Role.ADMIN


def login(username: str, password: str) -> Tuple[bool, str]:
    """
    Log a user in.

    Returns:
        Tuple of (success: bool, message: str)
    """
    role = authenticate(username, password)
    if role is None:
        return False, MSG_LOGIN_FAILED

    st.session_state[SESSION_ROLE_KEY] = role.value
    st.session_state[SESSION_USERNAME_KEY] = username
    logger.info(f"{username} logged in as {role.value}")
    return True, MSG_LOGIN_OK


def logout() -> None:
    """
    Log out and release the dashboard subscription.

    Behavior:
        - Closes the live feed so no further snapshots arrive
        - Clears role and username from session state
    """
    feed = st.session_state.get(SESSION_FEED_KEY)
    if feed is not None:
        feed.close()

    for key in (SESSION_FEED_KEY, SESSION_ROLE_KEY, SESSION_USERNAME_KEY):
        if key in st.session_state:
            del st.session_state[key]
