"""Trade API: place orders through MEXC and read the caller's trade history."""

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select

from mexc_proxy.config import settings
from mexc_proxy.database import get_session
from mexc_proxy.models.trade import Trade
from mexc_proxy.schemas.trade import TradeRead, TradeRequest, TradeResponse
from mexc_proxy.services.auth import UserIdentity
from mexc_proxy.services.encryption import CredentialCipher
from mexc_proxy.services.order_execution import place_order_for_user
from mexc_proxy.api.deps import get_credential_cipher, get_current_user

router = APIRouter(prefix="/api", tags=["trades"])


@router.post("/trade", response_model=TradeResponse)
async def place_trade(
    order: TradeRequest,
    user: UserIdentity = Depends(get_current_user),
    session: Session = Depends(get_session),
    cipher: CredentialCipher = Depends(get_credential_cipher),
):
    payload = await place_order_for_user(session, cipher, user.user_id, order)
    return TradeResponse(data=payload)


@router.get("/trades", response_model=list[TradeRead])
def list_trades(
    limit: int = Query(default=10, ge=1),
    offset: int = Query(default=0, ge=0),
    user: UserIdentity = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    stmt = (
        select(Trade)
        .where(Trade.user_id == user.user_id)
        .order_by(Trade.created_at.desc(), Trade.id.desc())
        .offset(offset)
        .limit(min(limit, settings.trade_history_limit))
    )
    return session.exec(stmt).all()
