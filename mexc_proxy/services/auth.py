"""Identity token verification and (for development) issuance."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from mexc_proxy.config import settings
from mexc_proxy.errors import Unauthorized

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserIdentity:
    user_id: str
    email: str | None = None


def create_access_token(subject: str, email: str | None = None) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expire_minutes)
    payload = {"sub": subject, "exp": expire, "role": "authenticated"}
    if settings.jwt_audience:
        payload["aud"] = settings.jwt_audience
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict | None:
    """Decode and verify a JWT. Returns the claims, or None on any failure."""
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience or None,
            options={"verify_aud": bool(settings.jwt_audience)},
        )
    except JWTError as e:
        logger.debug(f"Token rejected: {e}")
        return None
    # python-jose accepts tokens with no aud claim even when an audience is given
    if settings.jwt_audience and "aud" not in claims:
        logger.debug("Token rejected: missing aud claim")
        return None
    return claims


def authenticate(bearer_token: str | None) -> UserIdentity:
    """Map a bearer token to the caller's identity.

    Missing, malformed, expired and forged tokens are all reported the same way.
    """
    if not bearer_token:
        raise Unauthorized()
    claims = decode_access_token(bearer_token)
    if not claims or not isinstance(claims.get("sub"), str) or not claims["sub"]:
        raise Unauthorized()
    return UserIdentity(user_id=claims["sub"], email=claims.get("email"))
