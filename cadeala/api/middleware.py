"""
HTTP middleware for the admin API: compression, CORS for the admin web
app, response hardening headers and a request body cap.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.gzip import GZipMiddleware

from cadeala.config import settings

# Responses are JSON only and never framed or rendered as pages
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
}


def _peer_is_trusted_proxy(peer: str) -> bool:
    trusted = {ip.strip() for ip in settings.trusted_proxy_ips or () if ip and ip.strip()}
    return "*" in trusted or peer in trusted


def get_client_ip(request: Request) -> str:
    """
    Address of the caller.

    X-Forwarded-For / X-Real-IP are honored only when proxy headers are
    enabled and the direct peer is a trusted proxy.
    """
    peer = request.client.host if request.client and request.client.host else ""
    if not settings.trust_proxy_headers or not _peer_is_trusted_proxy(peer):
        return peer

    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    return first_hop or request.headers.get("x-real-ip", "").strip() or peer


def setup_compression(app: FastAPI) -> None:
    # Collection dumps and transaction lists can get large
    app.add_middleware(GZipMiddleware, minimum_size=800)


def setup_cors(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=sorted(settings.cors_allow_origins),
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
        max_age=settings.cors_max_age,
    )


def setup_security_headers(app: FastAPI) -> None:
    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        return response


def setup_request_size_limit(app: FastAPI) -> None:
    @app.middleware("http")
    async def request_size_limit(request: Request, call_next):
        declared = request.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > settings.max_request_bytes:
            return JSONResponse(
                status_code=413,
                content={"error": "Payload too large"},
                headers={"Cache-Control": "no-store"},
            )
        return await call_next(request)
