"""
Firebase Admin SDK bootstrap.

The app is initialized once per process and shared by the Firestore,
Auth and Messaging wrappers.
"""

from __future__ import annotations

import logging
import threading

import firebase_admin
from firebase_admin import credentials

from cadeala.config import Settings, settings as default_settings
from cadeala.exceptions import BackendNotInitializedError

logger = logging.getLogger(__name__)

_app: firebase_admin.App | None = None
_lock = threading.Lock()


def _build_credential(cfg: Settings) -> credentials.Base | None:
    private_key = cfg.firebase_private_key
    if private_key and cfg.firebase_client_email:
        return credentials.Certificate(
            {
                "type": "service_account",
                "project_id": cfg.firebase_project_id,
                "private_key": private_key,
                "client_email": cfg.firebase_client_email,
                "token_uri": "https://oauth2.googleapis.com/token",
            }
        )
    if cfg.firebase_credentials_path and cfg.firebase_credentials_path.is_file():
        return credentials.Certificate(str(cfg.firebase_credentials_path))
    # Application default credentials
    return None


def get_firebase_app(cfg: Settings | None = None) -> firebase_admin.App:
    """Return the shared Firebase Admin app, initializing it on first use."""
    global _app
    if _app is not None:
        return _app

    cfg = cfg or default_settings
    with _lock:
        if _app is not None:
            return _app
        try:
            # Reuse an app some other code already initialized
            _app = firebase_admin.get_app()
            return _app
        except ValueError:
            pass

        options: dict[str, str] = {}
        if cfg.firebase_project_id:
            options["projectId"] = cfg.firebase_project_id
        if cfg.firebase_storage_bucket:
            options["storageBucket"] = cfg.firebase_storage_bucket

        try:
            _app = firebase_admin.initialize_app(_build_credential(cfg), options or None)
        except (ValueError, OSError) as exc:
            logger.error("Firebase Admin initialization failed: %s", exc)
            raise BackendNotInitializedError(str(exc)) from exc

        logger.info("Firebase Admin initialized", extra={"project_id": cfg.firebase_project_id})
        return _app
