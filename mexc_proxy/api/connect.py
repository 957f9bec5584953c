"""MEXC connection API: store, inspect, test and disconnect a user's credentials."""

import logging

from fastapi import APIRouter, Depends
from sqlmodel import Session

from mexc_proxy.database import get_session
from mexc_proxy.schemas.credential import ConnectRequest, KeysResponse, OkResponse, StatusResponse
from mexc_proxy.services import credential_store
from mexc_proxy.services.auth import UserIdentity
from mexc_proxy.services.encryption import CredentialCipher
from mexc_proxy.services.mexc_client import MexcClient
from mexc_proxy.api.deps import get_credential_cipher, get_current_user, require_service_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["connect"])


@router.post("/connect", response_model=OkResponse)
def connect(
    data: ConnectRequest,
    user: UserIdentity = Depends(get_current_user),
    session: Session = Depends(get_session),
    cipher: CredentialCipher = Depends(get_credential_cipher),
):
    credential_store.upsert(
        session,
        cipher,
        user.user_id,
        api_key=data.api_key,
        api_secret=data.api_secret,
        label=data.label,
    )
    return OkResponse()


@router.get("/status", response_model=StatusResponse)
def status(
    user: UserIdentity = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    result = credential_store.get_public_status(session, user.user_id)
    return StatusResponse(connected=result.connected, updated_at=result.updated_at)


@router.delete("/connect", response_model=OkResponse)
def disconnect(
    user: UserIdentity = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    credential_store.remove(session, user.user_id)
    return OkResponse()


@router.post("/connect/test", response_model=OkResponse)
async def test_connection(
    user: UserIdentity = Depends(get_current_user),
    session: Session = Depends(get_session),
    cipher: CredentialCipher = Depends(get_credential_cipher),
):
    """Check the stored key pair with a signed, read-only account request."""
    api_key, api_secret = credential_store.load_credentials(session, cipher, user.user_id)
    async with MexcClient(api_key, api_secret) as client:
        await client.test_connection()
    logger.info(f"MEXC credentials verified for user {user.user_id}")
    return OkResponse()


@router.get("/keys", response_model=KeysResponse)
def read_keys(
    user: UserIdentity = Depends(require_service_key),
    session: Session = Depends(get_session),
    cipher: CredentialCipher = Depends(get_credential_cipher),
):
    """Privileged: decrypted credentials for a trusted server-side caller."""
    api_key, api_secret = credential_store.load_credentials(session, cipher, user.user_id)
    logger.info(f"Raw credentials read for user {user.user_id}")
    return KeysResponse(api_key=api_key, api_secret=api_secret)
