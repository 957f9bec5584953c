"""Place an order on MEXC on behalf of an authenticated user.

One call walks the stages below, in order. Any stage can end the request
with an error; nothing is retried. Once MEXC has answered, the result is
returned to the caller even if the trade row cannot be written.
"""

import enum
import logging
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from mexc_proxy.errors import ExchangeRejected, ExchangeUnavailable, IntegrityError
from mexc_proxy.models.trade import Trade
from mexc_proxy.schemas.trade import TradeRequest
from mexc_proxy.services import credential_store
from mexc_proxy.services.encryption import CredentialCipher
from mexc_proxy.services.mexc_client import MexcClient, now_ms

logger = logging.getLogger(__name__)

REJECTED_STATUS = "REJECTED"
DEFAULT_STATUS = "PENDING"


class ExecutionStage(str, enum.Enum):
    CREDENTIAL_LOOKUP = "credential_lookup"
    DECRYPTING = "decrypting"
    SIGNING = "signing"
    SUBMITTING = "submitting"
    RECORDING = "recording"
    DONE = "done"


async def place_order_for_user(
    session: Session,
    cipher: CredentialCipher,
    user_id: str,
    order: TradeRequest,
    client_factory: Callable[[str, str], MexcClient] | None = None,
) -> dict:
    """Submit ``order`` with the user's stored credentials.

    The caller has already authenticated ``user_id``.

    Returns:
        MEXC's order payload, unmodified.

    Raises:
        NotConnected: the user has no active credentials.
        IntegrityError: stored credentials failed to decrypt.
        ExchangeRejected: MEXC declined the order or could not be reached.
    """
    stage = _enter(user_id, ExecutionStage.CREDENTIAL_LOOKUP)
    conn = credential_store.get_active(session, user_id)

    stage = _enter(user_id, ExecutionStage.DECRYPTING)
    try:
        api_key, api_secret = credential_store.decrypt_connection(cipher, conn)
    except IntegrityError:
        logger.error(f"user={user_id} stage={stage.value}: stored credentials failed to decrypt")
        raise

    stage = _enter(user_id, ExecutionStage.SIGNING)
    params = order.to_order_params(timestamp=now_ms())
    executed_at = datetime.now(timezone.utc)

    stage = _enter(user_id, ExecutionStage.SUBMITTING)
    client = (client_factory or MexcClient)(api_key, api_secret)
    try:
        payload = await client.place_order(params)
    except ExchangeUnavailable:
        # No answer: the order may or may not exist, so there is nothing honest to record
        logger.error(f"user={user_id} stage={stage.value}: no usable response from MEXC for {order.symbol}")
        raise
    except ExchangeRejected as e:
        _record_trade(session, user_id, order, executed_at, status=REJECTED_STATUS, error_message=str(e))
        raise
    finally:
        await client.close()

    stage = _enter(user_id, ExecutionStage.RECORDING)
    order_id = payload.get("orderId")
    _record_trade(
        session,
        user_id,
        order,
        executed_at,
        status=payload.get("status") or DEFAULT_STATUS,
        mexc_order_id=str(order_id) if order_id is not None else None,
    )

    stage = _enter(user_id, ExecutionStage.DONE)
    logger.info(
        f"user={user_id} stage={stage.value}: {order.order_type} {order.side} "
        f"{order.quantity} {order.symbol} -> orderId={order_id}"
    )
    return payload


def _enter(user_id: str, stage: ExecutionStage) -> ExecutionStage:
    logger.debug(f"user={user_id} stage={stage.value}")
    return stage


def _record_trade(
    session: Session,
    user_id: str,
    order: TradeRequest,
    executed_at: datetime,
    status: str,
    mexc_order_id: str | None = None,
    error_message: str | None = None,
) -> Trade | None:
    """Best-effort write of the trade snapshot. Failures are logged, never raised."""
    trade = Trade(
        user_id=user_id,
        symbol=order.symbol,
        side=order.side,
        order_type=order.order_type,
        quantity=order.quantity,
        price=order.price,
        status=status,
        mexc_order_id=mexc_order_id,
        error_message=error_message,
        executed_at=executed_at,
    )
    try:
        session.add(trade)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(
            f"Failed to record trade for user={user_id} "
            f"(orderId={mexc_order_id}, status={status}): {e}"
        )
        return None
    return trade
