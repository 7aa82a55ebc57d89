"""Unit tests for the error translator and its FastAPI wiring."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.exceptions import HTTPException as StarletteHTTPException

from todo_api.error_handlers import register_error_handlers, translate_error
from todo_api.errors import (
    AuthenticationRequired,
    MalformedIdentifier,
    NotFound,
    NotOwned,
    ValidationFailed,
)
from todo_api.schemas import ErrorBody


def _build_client() -> TestClient:
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/query")
    def query(limit: int) -> dict:
        return {"limit": limit}

    @app.get("/auth")
    def auth() -> None:
        raise AuthenticationRequired()

    @app.get("/not-owned")
    def not_owned() -> None:
        raise NotOwned()

    @app.get("/invalid")
    def invalid() -> None:
        raise ValidationFailed([{"field": "title", "issue": "Field required"}])

    @app.get("/boom")
    def boom() -> None:
        raise RuntimeError("connection reset by store")

    return TestClient(app, raise_server_exceptions=False)


def test_translation_table() -> None:
    assert translate_error(AuthenticationRequired()) == (401, {"error": "Not authenticated"})
    assert translate_error(NotFound()) == (404, {"error": "Todo not found"})
    assert translate_error(MalformedIdentifier("xyz")) == (404, {"error": "Todo not found"})
    status_code, body = translate_error(NotOwned())
    assert status_code == 401
    assert body["error"]


def test_validation_failure_carries_details() -> None:
    details = [{"field": "title", "issue": "Field required"}]

    assert translate_error(ValidationFailed(details)) == (
        422,
        {"error": "Todo validation failed", "detail": details},
    )


def test_unknown_failures_map_to_500() -> None:
    assert translate_error(KeyError("owner")) == (500, {"error": "Internal server error"})


def test_http_exceptions_keep_their_status() -> None:
    assert translate_error(StarletteHTTPException(status_code=405, detail="Method Not Allowed")) == (
        405,
        {"error": "Method Not Allowed"},
    )


def test_authentication_errors_advertise_bearer_scheme() -> None:
    response = _build_client().get("/auth")

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"
    assert response.json() == {"error": "Not authenticated"}


def test_not_owned_is_rendered_as_401() -> None:
    response = _build_client().get("/not-owned")

    assert response.status_code == 401
    assert "www-authenticate" not in response.headers


def test_store_validation_errors_are_422() -> None:
    response = _build_client().get("/invalid")

    assert response.status_code == 422
    assert response.json()["detail"] == [{"field": "title", "issue": "Field required"}]


def test_request_validation_errors_are_normalized() -> None:
    response = _build_client().get("/query")

    assert response.status_code == 422
    payload = response.json()
    assert payload["error"] == "Request validation failed"
    assert payload["detail"][0]["field"] == "query.limit"


def test_unexpected_errors_do_not_leak_internals() -> None:
    response = _build_client().get("/boom")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_unknown_routes_use_error_body() -> None:
    response = _build_client().get("/missing")

    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


def test_unexpected_errors_are_logged_once_without_traceback(caplog) -> None:
    with caplog.at_level(logging.ERROR, logger="todo_api.error_handlers"):
        _build_client().get("/boom")

    records = [r for r in caplog.records if r.name == "todo_api.error_handlers"]
    assert len(records) == 1
    assert records[0].exc_info is None
    assert "RuntimeError" in records[0].getMessage()


def test_error_body_detail_is_only_for_validation_errors() -> None:
    schema = ErrorBody.model_json_schema()
    assert schema["required"] == ["error"]

    _, not_found = translate_error(NotFound())
    assert "detail" not in not_found
    assert ErrorBody(**not_found).model_dump(exclude_none=True) == not_found

    _, invalid = translate_error(ValidationFailed([{"field": "title", "issue": "Field required"}]))
    assert ErrorBody(**invalid).model_dump(exclude_none=True) == invalid
