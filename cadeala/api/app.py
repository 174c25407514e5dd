"""
FastAPI application factory.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Response

from cadeala import __version__
from cadeala.api.errors import install_exception_handlers
from cadeala.api.middleware import setup_compression, setup_cors, setup_request_size_limit, setup_security_headers
from cadeala.api.observability import ObservabilityMiddleware
from cadeala.api.routes import admin as admin_routes
from cadeala.api.routes import fcm as fcm_routes
from cadeala.api.routes import notifications as notification_routes
from cadeala.api.routes import points as points_routes
from cadeala.api.routes import qr_codes as qr_routes
from cadeala.api.routes import registrations as registration_routes
from cadeala.api.routes import users as user_routes
from cadeala.api.state import AppState
from cadeala.config import settings
from cadeala.exceptions import BackendNotInitializedError
from cadeala.logging_config import get_logger, log_error
from cadeala.notifications import MemoryPushSender, PushSender
from cadeala.qr_codes import QRCodeService
from cadeala.repository import (
    DocumentStore,
    FirebaseIdentityProvider,
    FirestoreDocumentStore,
    IdentityProvider,
    MemoryDocumentStore,
    MemoryIdentityProvider,
)

logger = get_logger(__name__)


def build_state(backend: str | None = None) -> AppState:
    """Wire the backends named by `backend` (defaults to settings.backend)."""
    backend = backend or settings.backend
    if backend == "memory":
        logger.warning("Using in-memory backends; data is lost on restart")
        return AppState(
            store=MemoryDocumentStore(),
            identity=MemoryIdentityProvider(),
            push_sender=MemoryPushSender(),
        )
    # The push sender is created on first use
    return AppState(store=FirestoreDocumentStore(), identity=FirebaseIdentityProvider())


def create_app(
    *,
    store: DocumentStore | None = None,
    identity: IdentityProvider | None = None,
    push_sender: PushSender | None = None,
    qr: QRCodeService | None = None,
) -> FastAPI:
    """
    Build the API.

    Backends passed in are used as-is (tests pass in-memory ones). Otherwise
    they are wired at startup from settings.backend.
    """
    injected = store is not None and identity is not None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "state", None) is None:
            try:
                app.state.state = build_state()
            except BackendNotInitializedError as exc:
                # Keep serving; every backend route answers 500 with this error
                log_error("backend_init_failed", exc, backend=settings.backend)
                app.state.startup_error = exc
            else:
                logger.info("Backends wired", extra={"backend": settings.backend})
        yield

    app = FastAPI(
        title="Cadeala Rewards API",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    if injected:
        app.state.state = AppState(
            store=store,
            identity=identity,
            push_sender=push_sender,
            qr=qr or QRCodeService(),
        )

    setup_compression(app)
    setup_cors(app)
    setup_security_headers(app)
    setup_request_size_limit(app)

    # Added last so it wraps every other middleware
    app.add_middleware(ObservabilityMiddleware)

    @app.get("/api/health")
    def health(response: Response) -> dict:
        response.headers["Cache-Control"] = "no-store"
        return {"ok": True}

    app.include_router(admin_routes.router)
    app.include_router(user_routes.router)
    app.include_router(fcm_routes.router)
    app.include_router(qr_routes.router)
    app.include_router(notification_routes.router)
    app.include_router(points_routes.router)
    app.include_router(registration_routes.router)

    install_exception_handlers(app)
    return app
