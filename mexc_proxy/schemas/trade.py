"""Pydantic schemas for the trade API."""

from datetime import datetime
from decimal import Decimal
import re
from typing import Any, Literal

from pydantic import Field, field_validator, model_validator

from mexc_proxy.schemas.credential import CamelModel
from mexc_proxy.services.signer import OrderParams

_SYMBOL_RE = re.compile(r"^[A-Z0-9]{2,20}$")


class TradeRequest(CamelModel):
    symbol: str
    side: Literal["BUY", "SELL"]
    order_type: Literal["MARKET", "LIMIT"]
    quantity: Decimal = Field(gt=0)
    price: Decimal | None = Field(default=None, gt=0)  # Required for LIMIT, absent for MARKET

    @field_validator("symbol")
    @classmethod
    def _validate_symbol(cls, value: str) -> str:
        symbol = value.strip().upper()
        if not _SYMBOL_RE.fullmatch(symbol):
            raise ValueError("must be 2-20 letters or digits, e.g. BTCUSDT")
        return symbol

    @field_validator("side", "order_type", mode="before")
    @classmethod
    def _upper(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @model_validator(mode="after")
    def _check_price(self) -> "TradeRequest":
        if self.order_type == "LIMIT" and self.price is None:
            raise ValueError("price is required for LIMIT orders")
        if self.order_type == "MARKET" and self.price is not None:
            raise ValueError("price is only allowed for LIMIT orders")
        return self

    def to_order_params(self, timestamp: int) -> OrderParams:
        return OrderParams(
            symbol=self.symbol,
            side=self.side,
            type=self.order_type,
            quantity=self.quantity,
            timestamp=timestamp,
            price=self.price,
        )


class TradeResponse(CamelModel):
    success: bool = True
    data: dict[str, Any]  # MEXC's order payload, unmodified


class TradeRead(CamelModel):
    id: int
    symbol: str
    side: str
    order_type: str
    quantity: Decimal
    price: Decimal | None
    status: str
    mexc_order_id: str | None
    error_message: str | None
    executed_at: datetime
    created_at: datetime

    model_config = {"from_attributes": True}
