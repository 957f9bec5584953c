"""MexcConnection model — a user's AES-GCM encrypted MEXC API credentials."""

from datetime import datetime, timezone
from sqlmodel import SQLModel, Field


class MexcConnection(SQLModel, table=True):
    __tablename__ = "mexc_connection"

    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(unique=True, index=True, max_length=64)
    label: str | None = Field(default=None, max_length=120)
    # Ciphertext and nonce are only ever written and read as pairs
    api_key_ciphertext: bytes | None = None
    api_key_nonce: bytes | None = None
    api_secret_ciphertext: bytes | None = None
    api_secret_nonce: bytes | None = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
