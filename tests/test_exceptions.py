"""
Tests for cadeala.exceptions and the HTTP error envelopes.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from cadeala.api import create_app
from cadeala.exceptions import (
    BackendNotInitializedError,
    BusinessNotFoundError,
    CadealaError,
    IdGenerationError,
    NotFoundError,
    OperationFailedError,
    UserNotFoundError,
    ValidationError,
    exception_to_http_status,
    handle_exception,
)


@pytest.mark.parametrize(
    "exc, status",
    [
        (ValidationError(), 400),
        (NotFoundError("Thing not found"), 404),
        (BusinessNotFoundError("BIZ0001"), 404),
        (UserNotFoundError("uid"), 404),
        (IdGenerationError("BIZ", 10), 500),
        (BackendNotInitializedError("no credentials"), 500),
        (OperationFailedError("Failed to delete user", cause=RuntimeError("boom")), 500),
        (CadealaError("something"), 500),
    ],
)
def test_status_mapping(exc, status):
    assert exception_to_http_status(exc) == status


def test_validation_error_envelope():
    err = ValidationError("Token is required", field="token")
    assert err.to_dict() == {
        "error": "Token is required",
        "details": [{"path": ["token"], "message": "Token is required", "code": "invalid"}],
    }


def test_not_found_envelope_has_no_details():
    assert BusinessNotFoundError("BIZ0001").to_dict() == {"error": "Business not found"}


def test_operation_failed_carries_cause():
    err = OperationFailedError("Failed to get user", cause=ConnectionError("timeout"))
    assert err.to_dict() == {"error": "Failed to get user", "details": "timeout"}
    assert str(err) == "Failed to get user: timeout"


def test_id_generation_message():
    assert IdGenerationError("CLASS", 10).message == "Unable to generate unique CLASS ID after 10 attempts"


def test_handle_exception_for_unknown_errors():
    body = handle_exception(KeyError("missing"), request_id="req-1")
    assert body["error"] == "An unexpected error occurred"
    assert "missing" in body["details"]


def test_unhandled_exception_is_500_with_request_id(store, identity):
    class BrokenStore(type(store)):
        def list_collections(self):
            raise RuntimeError("disk on fire")

    app = create_app(store=BrokenStore(), identity=identity)
    client = TestClient(app, raise_server_exceptions=False)

    resp = client.get("/api/collections", headers={"X-Request-ID": "req-42"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to fetch collections", "details": "disk on fire"}
    assert resp.headers["X-Request-ID"] == "req-42"
    assert resp.headers["Cache-Control"] == "no-store"


def test_backend_not_wired_is_500():
    app = create_app()
    client = TestClient(app, raise_server_exceptions=False)

    resp = client.get("/api/admin/businesses")
    assert resp.status_code == 500
    assert resp.json()["error"] == "Firebase Admin not initialized"
