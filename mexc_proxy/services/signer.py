"""MEXC spot API request signing (HMAC-SHA256 over the query string)."""

import hashlib
import hmac
from dataclasses import dataclass
from decimal import Decimal
from urllib.parse import urlencode

from mexc_proxy.errors import ValidationError

SIDES = ("BUY", "SELL")
ORDER_TYPES = ("MARKET", "LIMIT")
LIMIT_TIME_IN_FORCE = "GTC"


@dataclass(frozen=True)
class OrderParams:
    symbol: str
    side: str  # "BUY" or "SELL"
    type: str  # "MARKET" or "LIMIT"
    quantity: Decimal | str
    timestamp: int  # ms since epoch, captured when the request is built
    price: Decimal | str | None = None  # LIMIT only

    def validate(self):
        if not self.symbol:
            raise ValidationError("symbol is required")
        if self.side not in SIDES:
            raise ValidationError(f"side must be one of {', '.join(SIDES)}")
        if self.type not in ORDER_TYPES:
            raise ValidationError(f"orderType must be one of {', '.join(ORDER_TYPES)}")
        if self.type == "LIMIT" and self.price is None:
            raise ValidationError("price is required for LIMIT orders")

    def to_query_pairs(self) -> list[tuple[str, str]]:
        """Order fields exactly as MEXC expects them; the signature depends on it."""
        self.validate()
        pairs = [
            ("symbol", self.symbol),
            ("side", self.side),
            ("type", self.type),
            ("quantity", format_decimal(self.quantity)),
            ("timestamp", str(self.timestamp)),
        ]
        if self.type == "LIMIT":
            pairs.append(("price", format_decimal(self.price)))
            pairs.append(("timeInForce", LIMIT_TIME_IN_FORCE))
        return pairs


def format_decimal(value: Decimal | str | int | float) -> str:
    """Plain positional notation: 0.00001 rather than 1E-5, 100 rather than 1E+2."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return format(value.normalize(), "f")


def signature_for(query_string: str, api_secret: str) -> str:
    return hmac.new(
        api_secret.encode("utf-8"),
        query_string.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def sign_query(pairs: list[tuple[str, str]], api_secret: str) -> str:
    """Encode ``pairs`` in the given order and append ``signature=``."""
    query_string = urlencode(pairs)
    return f"{query_string}&signature={signature_for(query_string, api_secret)}"


def sign(order_params: OrderParams, api_secret: str) -> str:
    """Return the signed query string for a new-order request."""
    return sign_query(order_params.to_query_pairs(), api_secret)
