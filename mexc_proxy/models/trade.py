"""Trade model — immutable snapshot of every order submitted to MEXC."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlmodel import SQLModel, Field


class Trade(SQLModel, table=True):
    __tablename__ = "trade"

    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True, max_length=64)
    symbol: str = Field(max_length=20)  # e.g. "BTCUSDT"
    side: str  # "BUY" or "SELL"
    order_type: str  # "MARKET" or "LIMIT"
    quantity: Decimal = Field(max_digits=36, decimal_places=18)
    price: Decimal | None = Field(default=None, max_digits=36, decimal_places=18)  # LIMIT only
    status: str = "PENDING"  # exchange-reported status at submission, or "REJECTED"
    mexc_order_id: str | None = None
    error_message: str | None = None
    executed_at: datetime  # when the order request was sent, not when it filled
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
