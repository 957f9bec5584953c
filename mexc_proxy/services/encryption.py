"""AES-256-GCM authenticated encryption for storing exchange credentials."""

import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from mexc_proxy.config import settings
from mexc_proxy.errors import IntegrityError

KEY_SIZE = 32  # bytes, AES-256
NONCE_SIZE = 12  # bytes, 96-bit GCM nonce

_cipher: "CredentialCipher | None" = None


def generate_key() -> str:
    """Return a fresh master key in the format TP_ENCRYPTION_KEY expects."""
    return base64.urlsafe_b64encode(AESGCM.generate_key(bit_length=256)).decode()


def decode_key(key: str) -> bytes:
    try:
        raw = base64.urlsafe_b64decode(key.encode())
    except (binascii.Error, ValueError):
        raw = b""
    if len(raw) != KEY_SIZE:
        raise RuntimeError(
            "TP_ENCRYPTION_KEY must be a urlsafe base64 encoded 32-byte key. "
            "Generate one with: python -m mexc_proxy.cli generate-key"
        )
    return raw


class CredentialCipher:
    """Encrypts and decrypts credential strings under a single master key.

    Holds no mutable state; one instance is shared across requests.
    """

    def __init__(self, master_key: bytes):
        if len(master_key) != KEY_SIZE:
            raise ValueError(f"master key must be {KEY_SIZE} bytes, got {len(master_key)}")
        self._aead = AESGCM(master_key)

    def encrypt(self, plaintext: str, associated_data: str | None = None) -> tuple[bytes, bytes]:
        """Encrypt ``plaintext`` and return ``(ciphertext, nonce)``.

        A new random nonce is drawn on every call. The ciphertext includes
        the 16-byte GCM tag.
        """
        nonce = os.urandom(NONCE_SIZE)
        ciphertext = self._aead.encrypt(nonce, plaintext.encode("utf-8"), _aad(associated_data))
        return ciphertext, nonce

    def decrypt(
        self,
        ciphertext: bytes | None,
        nonce: bytes | None,
        associated_data: str | None = None,
    ) -> str:
        """Decrypt a ``(ciphertext, nonce)`` pair.

        Raises:
            IntegrityError: if either half of the pair is missing or the
                authentication tag does not verify (tampered data, wrong key
                or wrong associated data).
        """
        if not ciphertext or not nonce:
            raise IntegrityError("incomplete ciphertext/nonce pair")
        if len(nonce) != NONCE_SIZE:
            raise IntegrityError(f"nonce must be {NONCE_SIZE} bytes, got {len(nonce)}")
        try:
            plaintext = self._aead.decrypt(bytes(nonce), bytes(ciphertext), _aad(associated_data))
        except InvalidTag:
            raise IntegrityError("authentication tag mismatch") from None
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError:
            raise IntegrityError("decrypted credential is not valid UTF-8") from None


def _aad(associated_data: str | None) -> bytes | None:
    if associated_data is None:
        return None
    return associated_data.encode("utf-8")


def get_cipher() -> CredentialCipher:
    """Return the process-wide cipher built from TP_ENCRYPTION_KEY."""
    global _cipher
    if _cipher is None:
        key = settings.encryption_key
        if not key:
            raise RuntimeError(
                "TP_ENCRYPTION_KEY not set. Generate one with: "
                "python -m mexc_proxy.cli generate-key"
            )
        _cipher = CredentialCipher(decode_key(key))
    return _cipher
