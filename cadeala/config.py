"""
Cadeala Rewards API - Configuration Management
==============================================
Centralized configuration with environment variable support and validation.

Usage:
    from cadeala.config import settings

    backend = settings.backend
    page_size = settings.customers_page_size
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

BACKENDS = frozenset({"firestore", "memory"})


def _env_str(name: str) -> str:
    return os.environ.get(name, "").strip()


def _env_int(name: str, default: int) -> int:
    value = _env_str(name)
    return int(value) if value else default


def _env_flag(name: str, default: bool) -> bool:
    value = _env_str(name).lower()
    return value in ("1", "true", "yes") if value else default


def _env_csv(name: str) -> set[str]:
    return {item.strip() for item in _env_str(name).split(",") if item.strip()}


@dataclass
class Settings:
    """Application settings with environment variable overrides."""

    # Backend wiring ("firestore" talks to Firebase, "memory" is for local runs and tests)
    backend: str = "firestore"

    # Firebase Admin
    firebase_project_id: str | None = None
    firebase_storage_bucket: str | None = None
    firebase_credentials_path: Path | None = None

    # QR code rendering (external public endpoint)
    qr_service_url: str = "https://api.qrserver.com/v1/create-qr-code/"
    qr_code_size: int = 500

    # ID generation
    id_max_attempts: int = 10

    # Admin listings
    transactions_default_limit: int = 100
    transactions_max_limit: int = 1000
    customers_page_size: int = 25
    users_max_results: int = 1000
    bulk_delete_max_uids: int = 100

    # Reverse proxy / client IP extraction
    trust_proxy_headers: bool = False
    trusted_proxy_ips: set[str] = field(default_factory=set)

    # CORS configuration
    # Example: CORS_ALLOW_ORIGINS="https://cadeala.app,https://admin.cadeala.app"
    cors_allow_origins: set[str] = field(
        default_factory=lambda: {
            "http://localhost",
            "http://localhost:3000",  # Next.js dev server
            "http://127.0.0.1",
            "http://127.0.0.1:3000",
        }
    )
    cors_allow_credentials: bool = False
    cors_max_age: int = 600  # 10 minutes

    # Request limits
    max_request_bytes: int = 1_000_000

    debug_mode: bool = False

    def __post_init__(self):
        self._load_env_overrides()

    def _load_env_overrides(self):
        backend = _env_str("CADEALA_BACKEND").lower()
        if backend in BACKENDS:
            self.backend = backend
        elif backend:
            logger.warning("Unknown CADEALA_BACKEND %r, keeping %r", backend, self.backend)

        self.firebase_project_id = _env_str("FIREBASE_PROJECT_ID") or self.firebase_project_id
        self.firebase_storage_bucket = _env_str("FIREBASE_STORAGE_BUCKET") or self.firebase_storage_bucket
        if cred_path := _env_str("GOOGLE_APPLICATION_CREDENTIALS"):
            self.firebase_credentials_path = Path(cred_path)

        self.qr_service_url = _env_str("QR_SERVICE_URL") or self.qr_service_url
        self.qr_code_size = _env_int("QR_CODE_SIZE", self.qr_code_size)
        self.id_max_attempts = _env_int("ID_MAX_ATTEMPTS", self.id_max_attempts)
        self.transactions_default_limit = _env_int("TRANSACTIONS_DEFAULT_LIMIT", self.transactions_default_limit)
        self.customers_page_size = _env_int("CUSTOMERS_PAGE_SIZE", self.customers_page_size)
        self.users_max_results = _env_int("USERS_MAX_RESULTS", self.users_max_results)
        self.bulk_delete_max_uids = _env_int("BULK_DELETE_MAX_UIDS", self.bulk_delete_max_uids)

        self.trust_proxy_headers = _env_flag("TRUST_PROXY_HEADERS", self.trust_proxy_headers)
        self.trusted_proxy_ips = _env_csv("TRUSTED_PROXY_IPS") or self.trusted_proxy_ips

        # Production deployments must name the admin web app's origin
        if origins := _env_csv("CORS_ALLOW_ORIGINS"):
            if "*" in origins:
                logger.warning("CORS_ALLOW_ORIGINS allows every origin; use only for local development")
            self.cors_allow_origins = origins
        self.cors_max_age = _env_int("CORS_MAX_AGE", self.cors_max_age)
        self.max_request_bytes = _env_int("MAX_REQUEST_BYTES", self.max_request_bytes)

        self.debug_mode = _env_flag("DEBUG", self.debug_mode)

    @property
    def firebase_private_key(self) -> str | None:
        """Service account private key from environment (never stored in config)."""
        key = os.environ.get("FIREBASE_ADMIN_PRIVATE_KEY")
        if not key:
            return None
        # Keys pasted into .env files usually carry literal "\n" sequences.
        return key.replace("\\n", "\n")

    @property
    def firebase_client_email(self) -> str | None:
        """Service account client email from environment."""
        return os.environ.get("FIREBASE_CLIENT_EMAIL")


# Singleton instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Settings for this process, read from the environment on first call."""
    global _settings
    if _settings is None:
        _settings = Settings()
        if _settings.debug_mode:
            logger.info("Settings loaded with debug mode enabled")
    return _settings


def reload_settings() -> Settings:
    """Re-read the environment into a fresh Settings."""
    global _settings
    _settings = Settings()
    return _settings


# Import-time snapshot used across the app
settings = get_settings()


USER_ROLES = frozenset(
    {
        "customer",
        "business",
        "business-pending-approval",
        "admin",
    }
)

# 100 points are worth one dollar across every business
POINTS_TO_DOLLAR_RATE = 100
