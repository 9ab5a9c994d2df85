"""Application settings loaded from the environment and an optional .env file."""
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Optional


_ENV_LOADED = False
_ENV_LOCK = Lock()

DEFAULT_CAPACITY = 250
DEFAULT_DOB_MIN_YEAR = 1990
DEFAULT_DOB_MAX_YEAR = 2007
DEFAULT_PAGE_SIZE = 50
DEFAULT_LOCAL_CACHE_FILE = "data/local_cache.json"
DEFAULT_REGISTRATIONS_COLLECTION = "ysa_registrations"
DEFAULT_USERS_COLLECTION = "ysa_system_users"

# Master accounts are never stored as data and cannot be deleted.
DEFAULT_ADMIN_USERNAME = "AdminYSACambodia2025"
DEFAULT_ADMIN_PASSWORD = "AdminSouthStakeYSA"
DEFAULT_VIEWER_USERNAME = "ViewerYSACambodia2025"
DEFAULT_VIEWER_PASSWORD = "ViewerSouthStakeYSA"


def load_env_file(env_path: Path = Path(".env")) -> None:
    """
    Load KEY=VALUE pairs from a .env file into os.environ.

    Variables already present in the environment are left untouched, so
    deployment settings always win over the file.
    """
    global _ENV_LOADED

    if _ENV_LOADED:
        return

    with _ENV_LOCK:
        if _ENV_LOADED:
            return

        if env_path.exists():
            for raw_line in env_path.read_text(encoding="utf-8").splitlines():
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue

                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip().strip('"\'')

                if key and key not in os.environ:
                    os.environ[key] = value

        _ENV_LOADED = True


def _env_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logging.getLogger(__name__).warning(
            "Ignoring non-integer %s=%r, using %s", key, raw, default
        )
        return default


@dataclass(frozen=True)
class Settings:
    """Resolved configuration for one process."""

    capacity: int = DEFAULT_CAPACITY
    dob_min_year: int = DEFAULT_DOB_MIN_YEAR
    dob_max_year: int = DEFAULT_DOB_MAX_YEAR
    page_size: int = DEFAULT_PAGE_SIZE
    local_cache_file: str = DEFAULT_LOCAL_CACHE_FILE
    firestore_project_id: Optional[str] = None
    firestore_credentials_file: Optional[str] = None
    registrations_collection: str = DEFAULT_REGISTRATIONS_COLLECTION
    users_collection: str = DEFAULT_USERS_COLLECTION
    admin_username: str = DEFAULT_ADMIN_USERNAME
    admin_password: str = DEFAULT_ADMIN_PASSWORD
    viewer_username: str = DEFAULT_VIEWER_USERNAME
    viewer_password: str = DEFAULT_VIEWER_PASSWORD
    log_level: str = "INFO"

    @property
    def remote_configured(self) -> bool:
        """Firestore is usable only when a project id is known."""
        return bool(self.firestore_project_id)


def get_settings() -> Settings:
    """
    Build settings from environment variables.

    Returns:
        Settings: frozen settings object

    Behavior:
        - Loads .env once per process
        - Falls back to built-in defaults for anything unset
        - Reads the environment on every call so tests can monkeypatch it
    """
    load_env_file()

    return Settings(
        capacity=_env_int("REGISTRATION_CAPACITY", DEFAULT_CAPACITY),
        dob_min_year=_env_int("DOB_MIN_YEAR", DEFAULT_DOB_MIN_YEAR),
        dob_max_year=_env_int("DOB_MAX_YEAR", DEFAULT_DOB_MAX_YEAR),
        page_size=_env_int("PAGE_SIZE", DEFAULT_PAGE_SIZE),
        local_cache_file=os.getenv("LOCAL_CACHE_FILE", DEFAULT_LOCAL_CACHE_FILE),
        firestore_project_id=os.getenv("FIRESTORE_PROJECT_ID") or None,
        firestore_credentials_file=os.getenv("FIRESTORE_CREDENTIALS_FILE") or None,
        registrations_collection=os.getenv("REGISTRATIONS_COLLECTION", DEFAULT_REGISTRATIONS_COLLECTION),
        users_collection=os.getenv("USERS_COLLECTION", DEFAULT_USERS_COLLECTION),
        admin_username=os.getenv("ADMIN_USERNAME", DEFAULT_ADMIN_USERNAME),
        admin_password=os.getenv("ADMIN_PASSWORD", DEFAULT_ADMIN_PASSWORD),
        viewer_username=os.getenv("VIEWER_USERNAME", DEFAULT_VIEWER_USERNAME),
        viewer_password=os.getenv("VIEWER_PASSWORD", DEFAULT_VIEWER_PASSWORD),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging once for the Streamlit process."""
    resolved = level or get_settings().log_level
    logging.basicConfig(
        level=getattr(logging, resolved, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
