"""Shared fixtures. Environment is set before any mexc_proxy import reads settings."""

import base64
import os

os.environ["TP_DATABASE_URL"] = "sqlite://"
os.environ["TP_ENCRYPTION_KEY"] = base64.urlsafe_b64encode(b"k" * 32).decode()
os.environ["TP_JWT_SECRET"] = "test-jwt-secret"
os.environ["TP_JWT_AUDIENCE"] = "authenticated"
os.environ["TP_SERVICE_KEY"] = "test-service-key"

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session

import mexc_proxy.models  # noqa: F401
from mexc_proxy.api.deps import get_credential_cipher
from mexc_proxy.database import build_engine, get_session
from mexc_proxy.main import app
from mexc_proxy.services import order_execution
from mexc_proxy.services.auth import create_access_token
from mexc_proxy.services.encryption import CredentialCipher
from mexc_proxy.services.mexc_client import MexcClient


@pytest.fixture
def cipher() -> CredentialCipher:
    return CredentialCipher(b"\x01" * 32)


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(engine, cipher):
    def _session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_credential_cipher] = lambda: cipher
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user_id: str = "user-1") -> dict:
        return {"Authorization": f"Bearer {create_access_token(subject=user_id)}"}
    return _headers


@pytest.fixture
def mexc(monkeypatch):
    """Route every outbound MEXC call from the order path to a recorded fake."""
    calls: list[httpx.Request] = []
    state = {"status": 200, "json": {"orderId": "123", "status": "FILLED"}, "text": None, "exc": None}

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if state["exc"] is not None:
            raise state["exc"]
        if state["text"] is not None:
            return httpx.Response(state["status"], text=state["text"])
        return httpx.Response(state["status"], json=state["json"])

    def factory(api_key, api_secret):
        return MexcClient(api_key, api_secret, transport=httpx.MockTransport(handler))

    monkeypatch.setattr(order_execution, "MexcClient", factory)
    return state, calls
