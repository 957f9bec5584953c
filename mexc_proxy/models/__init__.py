"""Database models."""

from mexc_proxy.models.connection import MexcConnection
from mexc_proxy.models.trade import Trade

__all__ = [
    "MexcConnection",
    "Trade",
]
