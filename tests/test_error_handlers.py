from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from mentorhub.shared.exceptions import (
    AlreadyBookedException,
    AuthenticationException,
    IllegalTransitionException,
    InvalidRangeException,
    NotFoundException,
    PaymentException,
    register_exception_handlers,
)


class Echo(BaseModel):
    value: int


def build_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    errors = {
        "booked": AlreadyBookedException("Slot is already booked"),
        "transition": IllegalTransitionException("Session cannot move from declined to cancelled"),
        "range": InvalidRangeException("Slot start must be before its end"),
        "missing": NotFoundException("Session not found"),
        "payment": PaymentException("Card declined"),
        "token": AuthenticationException("Token has expired"),
    }

    @app.get("/fail/{kind}")
    async def fail(kind: str) -> None:
        raise errors[kind]

    @app.get("/boom")
    async def boom() -> None:
        raise RuntimeError("secret internals")

    @app.post("/echo")
    async def echo(payload: Echo) -> Echo:
        return payload

    return app


@pytest.mark.parametrize(
    ("kind", "status_code", "code"),
    [
        ("booked", 409, "slot_already_booked"),
        ("transition", 409, "illegal_transition"),
        ("range", 422, "invalid_range"),
        ("missing", 404, "not_found"),
        ("payment", 402, "payment_failed"),
        ("token", 401, "not_authenticated"),
    ],
)
def test_domain_errors_render_stable_codes(kind: str, status_code: int, code: str) -> None:
    client = TestClient(build_app())

    response = client.get(f"/fail/{kind}")

    assert response.status_code == status_code
    assert response.json()["error"]["code"] == code


def test_unexpected_errors_hide_internals() -> None:
    client = TestClient(build_app(), raise_server_exceptions=False)

    response = client.get("/boom")

    assert response.status_code == 500
    assert response.json() == {"error": {"code": "internal_error", "message": "Internal server error"}}


def test_request_validation_uses_validation_code() -> None:
    client = TestClient(build_app())

    response = client.post("/echo", json={"value": "not-a-number"})

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "validation_error"
    assert "body.value" in response.json()["error"]["message"]
