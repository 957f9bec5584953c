"""MEXC spot REST client for order placement and credential checks.

Every request is signed with the user's decrypted secret and sent once.
Nothing here retries: a resubmitted order can execute twice.
"""

import logging
import time

import httpx

from mexc_proxy.config import settings
from mexc_proxy.errors import ExchangeRejected, ExchangeUnavailable
from mexc_proxy.services.signer import OrderParams, sign, sign_query

logger = logging.getLogger(__name__)

# httpx logs every request URL at INFO, and signed URLs carry the signature
logging.getLogger("httpx").setLevel(logging.WARNING)

ORDER_PATH = "/api/v3/order"
ACCOUNT_PATH = "/api/v3/account"
API_KEY_HEADER = "X-MEXC-APIKEY"
SUCCESS_CODES = (0, 200, "0", "200")


def now_ms() -> int:
    return int(time.time() * 1000)


class MexcClient:
    """Thin async wrapper around the MEXC spot REST API for one user's key pair."""

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_secret = api_secret
        self._client = httpx.AsyncClient(
            base_url=(base_url or settings.mexc_base_url).rstrip("/"),
            timeout=timeout if timeout is not None else settings.mexc_timeout_seconds,
            headers={API_KEY_HEADER: api_key, "Content-Type": "application/json"},
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def place_order(self, params: OrderParams) -> dict:
        """Submit a new order and return MEXC's response payload unmodified.

        Raises:
            ExchangeRejected: MEXC answered with an error status or error code.
            ExchangeUnavailable: no usable answer (network failure, timeout or
                a 5xx gateway page), so the order may or may not exist.
        """
        signed = sign(params, self._api_secret)
        logger.info(
            f"Submitting {params.type} {params.side} order: symbol={params.symbol}, "
            f"quantity={params.quantity}, price={params.price}"
        )
        response = await self._send("POST", f"{ORDER_PATH}?{signed}")
        data = _interpret(response)
        logger.info(f"Order accepted: orderId={data.get('orderId')}, status={data.get('status')}")
        return data

    async def test_connection(self) -> dict:
        """Signed, read-only account request proving the key pair works."""
        signed = sign_query([("timestamp", str(now_ms()))], self._api_secret)
        response = await self._send("GET", f"{ACCOUNT_PATH}?{signed}")
        return _interpret(response)

    async def _send(self, method: str, url: str) -> httpx.Response:
        try:
            return await self._client.request(method, url)
        except httpx.TimeoutException as e:
            logger.error(f"MEXC {method} {url.split('?')[0]} timed out: {type(e).__name__}")
            raise ExchangeUnavailable("MEXC request timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"MEXC {method} {url.split('?')[0]} failed: {type(e).__name__}")
            raise ExchangeUnavailable(f"MEXC request failed: {type(e).__name__}") from e

    async def close(self):
        await self._client.aclose()


def _interpret(response: httpx.Response) -> dict:
    """Return the JSON payload of a successful response, else raise ExchangeRejected."""
    try:
        data = response.json()
    except ValueError:
        data = None

    if not response.is_success:
        message = data.get("msg") if isinstance(data, dict) else None
        if response.is_server_error and not message:
            # Gateway error page: the order may or may not have reached the matching engine
            logger.error(f"MEXC gateway error without a message: http={response.status_code}")
            raise ExchangeUnavailable(f"MEXC unavailable (HTTP {response.status_code})")
        logger.warning(f"MEXC rejected request: http={response.status_code}, msg={message}")
        raise ExchangeRejected(message or "MEXC API error")

    if not isinstance(data, dict):
        logger.warning(f"MEXC returned a non-object body (http={response.status_code})")
        raise ExchangeRejected("MEXC API error")

    code = data.get("code")
    if code is not None and code not in SUCCESS_CODES:
        logger.warning(f"MEXC rejected request: code={code}, msg={data.get('msg')}")
        raise ExchangeRejected(data.get("msg") or "MEXC API error")

    return data
