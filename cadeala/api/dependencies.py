"""
Dependency helpers for API routes.

These are kept as simple functions (not FastAPI Depends) because the app
keeps its backends on request.app.state.
"""

from __future__ import annotations

from fastapi import Request

from cadeala.api.state import AppState
from cadeala.exceptions import BackendNotInitializedError
from cadeala.notifications import FirebasePushSender, PushSender
from cadeala.qr_codes import QRCodeService
from cadeala.repository import DocumentStore, IdentityProvider


def get_state(request: Request) -> AppState:
    state = getattr(request.app.state, "state", None)
    if state is None:
        startup_error = getattr(request.app.state, "startup_error", None)
        if startup_error is not None:
            raise startup_error
        raise BackendNotInitializedError("application backends are not wired")
    return state


def get_store(request: Request) -> DocumentStore:
    return get_state(request).store


def get_identity(request: Request) -> IdentityProvider:
    return get_state(request).identity


def get_qr_service(request: Request) -> QRCodeService:
    return get_state(request).qr


def get_push_sender(request: Request) -> PushSender:
    state = get_state(request)
    if state.push_sender is None:
        state.push_sender = FirebasePushSender()
    return state.push_sender
