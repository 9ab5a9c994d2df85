"""Process-wide access to the remote store and the local cache."""
from dataclasses import dataclass
from typing import Optional

from ysa_registration.config import Settings, get_settings
from ysa_registration.services.local_cache import LocalCache
from ysa_registration.services.remote_store import RemoteStore, get_remote_store


@dataclass
class Stores:
    """Everything a service needs to read or write records."""

    remote: Optional[RemoteStore]
    cache: LocalCache
    settings: Settings

    @property
    def registrations_collection(self) -> str:
        return self.settings.registrations_collection

    @property
    def users_collection(self) -> str:
        return self.settings.users_collection


# Cached stores
_stores_cache: Optional[Stores] = None


def _clear_cache():
    """Drop the cached stores so the next call rebuilds them."""
    global _stores_cache
    _stores_cache = None


def get_stores() -> Stores:
    """
    Build the stores once per process.

    Returns:
        Stores: remote store (None when not configured), local cache, settings
    """
    global _stores_cache

    if _stores_cache is not None:
        return _stores_cache

    settings = get_settings()
    _stores_cache = Stores(
        remote=get_remote_store(settings),
        cache=LocalCache(settings.local_cache_file),
        settings=settings,
    )
    return _stores_cache
