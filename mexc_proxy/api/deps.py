"""Shared API dependencies."""

import hmac

from fastapi import Depends, Header
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from mexc_proxy.config import settings
from mexc_proxy.errors import Forbidden
from mexc_proxy.services.auth import UserIdentity, authenticate
from mexc_proxy.services.encryption import CredentialCipher, get_cipher

# auto_error=False so a missing header gets the same 401 as a bad token
bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> UserIdentity:
    """Validate the bearer token and return the caller's identity."""
    return authenticate(credentials.credentials if credentials else None)


def require_service_key(
    user: UserIdentity = Depends(get_current_user),
    x_service_key: str | None = Header(default=None),
) -> UserIdentity:
    """Guard for the raw-credential read; disabled unless TP_SERVICE_KEY is set."""
    expected = settings.service_key
    if not expected or not x_service_key:
        raise Forbidden()
    if not hmac.compare_digest(x_service_key.encode(), expected.encode()):
        raise Forbidden()
    return user


def get_credential_cipher() -> CredentialCipher:
    return get_cipher()
