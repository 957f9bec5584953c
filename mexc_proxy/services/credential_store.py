"""Per-user storage of encrypted MEXC credentials.

Plaintext credentials only exist in memory: ``upsert`` encrypts before
anything reaches the database, ``load_credentials`` decrypts on demand.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from mexc_proxy.errors import NotConnected, PersistenceError
from mexc_proxy.models.connection import MexcConnection
from mexc_proxy.services.encryption import CredentialCipher

logger = logging.getLogger(__name__)

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@dataclass(frozen=True)
class ConnectionStatus:
    """Public-safe view of a connection: no credential material."""

    connected: bool
    updated_at: datetime | None = None


def key_aad(user_id: str) -> str:
    return f"{user_id}:api_key"


def secret_aad(user_id: str) -> str:
    return f"{user_id}:api_secret"


def upsert(
    session: Session,
    cipher: CredentialCipher,
    user_id: str,
    api_key: str,
    api_secret: str,
    label: str | None = None,
) -> MexcConnection:
    """Store (or replace) the user's credentials and mark them active.

    The row is written with a single INSERT ... ON CONFLICT (user_id) DO UPDATE,
    so concurrent submissions for one user replace whole rows and never mix
    ciphertext from one with the nonce of another.
    """
    key_ct, key_nonce = cipher.encrypt(api_key, key_aad(user_id))
    secret_ct, secret_nonce = cipher.encrypt(api_secret, secret_aad(user_id))
    now = datetime.now(timezone.utc)
    values = {
        "label": label,
        "api_key_ciphertext": key_ct,
        "api_key_nonce": key_nonce,
        "api_secret_ciphertext": secret_ct,
        "api_secret_nonce": secret_nonce,
        "is_active": True,
        "updated_at": now,
    }

    try:
        insert = _INSERT_BY_DIALECT.get(session.get_bind().dialect.name)
        if insert is None:
            raise PersistenceError(f"Unsupported database dialect: {session.get_bind().dialect.name}")
        stmt = insert(MexcConnection.__table__).values(user_id=user_id, created_at=now, **values)
        stmt = stmt.on_conflict_do_update(index_elements=["user_id"], set_=values)
        session.execute(stmt)
        session.commit()
        conn = session.exec(select(MexcConnection).where(MexcConnection.user_id == user_id)).one()
    except SQLAlchemyError as e:
        session.rollback()
        raise PersistenceError(f"Failed to store credentials: {e}") from e

    logger.info(f"Stored MEXC credentials for user {user_id}")
    return conn


def get_active(session: Session, user_id: str) -> MexcConnection:
    """Return the user's active connection or raise NotConnected."""
    try:
        conn = session.exec(
            select(MexcConnection).where(
                MexcConnection.user_id == user_id,
                MexcConnection.is_active == True,  # noqa: E712
            )
        ).first()
    except SQLAlchemyError as e:
        raise PersistenceError(f"Failed to read credentials: {e}") from e
    if conn is None:
        raise NotConnected()
    return conn


def get_public_status(session: Session, user_id: str) -> ConnectionStatus:
    """Answer "is a connection configured" without loading any ciphertext."""
    try:
        row = session.exec(
            select(MexcConnection.is_active, MexcConnection.updated_at).where(
                MexcConnection.user_id == user_id
            )
        ).first()
    except SQLAlchemyError as e:
        raise PersistenceError(f"Failed to read connection status: {e}") from e
    if row is None:
        return ConnectionStatus(connected=False)
    is_active, updated_at = row
    return ConnectionStatus(connected=bool(is_active), updated_at=updated_at)


def remove(session: Session, user_id: str) -> None:
    """Disconnect the user. The row and its ciphertext are kept, flagged inactive."""
    try:
        result = session.execute(
            update(MexcConnection.__table__)
            .where(MexcConnection.__table__.c.user_id == user_id)
            .values(is_active=False, updated_at=datetime.now(timezone.utc))
        )
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise PersistenceError(f"Failed to disconnect: {e}") from e
    if result.rowcount:
        logger.info(f"Disconnected MEXC credentials for user {user_id}")


def load_credentials(session: Session, cipher: CredentialCipher, user_id: str) -> tuple[str, str]:
    """Return the decrypted ``(api_key, api_secret)`` for the user's active connection.

    Raises:
        NotConnected: no active connection.
        IntegrityError: stored ciphertext failed authentication.
    """
    return decrypt_connection(cipher, get_active(session, user_id))


def decrypt_connection(cipher: CredentialCipher, conn: MexcConnection) -> tuple[str, str]:
    api_key = cipher.decrypt(conn.api_key_ciphertext, conn.api_key_nonce, key_aad(conn.user_id))
    api_secret = cipher.decrypt(conn.api_secret_ciphertext, conn.api_secret_nonce, secret_aad(conn.user_id))
    return api_key, api_secret
