"""Tests for the MEXC REST client, using an httpx mock transport."""

import hashlib
import hmac
import logging
from urllib.parse import parse_qsl

import httpx
import pytest

from mexc_proxy.errors import ExchangeRejected, ExchangeUnavailable
from mexc_proxy.services.mexc_client import MexcClient
from mexc_proxy.services.signer import OrderParams

ORDER = OrderParams(symbol="BTCUSDT", side="BUY", type="MARKET", quantity="0.01", timestamp=1700000000000)


def _client(handler, secret="mysecret") -> MexcClient:
    return MexcClient(
        "my-api-key", secret, base_url="https://mexc.test", transport=httpx.MockTransport(handler)
    )


@pytest.mark.asyncio
async def test_place_order_sends_signed_post():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"orderId": "123", "status": "FILLED"})

    async with _client(handler) as client:
        result = await client.place_order(ORDER)

    assert result == {"orderId": "123", "status": "FILLED"}
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/api/v3/order"
    assert request.headers["X-MEXC-APIKEY"] == "my-api-key"

    query = request.url.query.decode()
    unsigned, _, signature = query.rpartition("&signature=")
    assert unsigned == "symbol=BTCUSDT&side=BUY&type=MARKET&quantity=0.01&timestamp=1700000000000"
    assert signature == hmac.new(b"mysecret", unsigned.encode(), hashlib.sha256).hexdigest()


@pytest.mark.asyncio
async def test_payload_is_returned_unmodified():
    payload = {
        "symbol": "BTCUSDT",
        "orderId": "C02__443776347957968896088",
        "price": "0",
        "origQty": "0.01",
        "type": "MARKET",
        "side": "BUY",
        "transactTime": 1700000000123,
    }

    async with _client(lambda request: httpx.Response(200, json=payload)) as client:
        assert await client.place_order(ORDER) == payload


@pytest.mark.asyncio
async def test_error_status_passes_message_through():
    def handler(request):
        return httpx.Response(400, json={"code": 30004, "msg": "Insufficient balance"})

    async with _client(handler) as client:
        with pytest.raises(ExchangeRejected) as excinfo:
            await client.place_order(ORDER)

    assert str(excinfo.value) == "Insufficient balance"
    assert excinfo.value.public_message == "Insufficient balance"
    assert not isinstance(excinfo.value, ExchangeUnavailable)


@pytest.mark.asyncio
async def test_error_code_in_success_response_is_rejected():
    def handler(request):
        return httpx.Response(200, json={"code": 10072, "msg": "Api key info invalid"})

    async with _client(handler) as client:
        with pytest.raises(ExchangeRejected, match="Api key info invalid"):
            await client.place_order(ORDER)


@pytest.mark.asyncio
async def test_non_json_error_uses_generic_message():
    async with _client(lambda request: httpx.Response(403, text="<html>Forbidden</html>")) as client:
        with pytest.raises(ExchangeRejected, match="MEXC API error") as excinfo:
            await client.place_order(ORDER)
    assert not isinstance(excinfo.value, ExchangeUnavailable)


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [500, 502, 503, 504])
async def test_gateway_error_page_is_unavailable(status):
    async with _client(lambda request: httpx.Response(status, text="<html>Bad gateway</html>")) as client:
        with pytest.raises(ExchangeUnavailable, match=f"HTTP {status}"):
            await client.place_order(ORDER)


@pytest.mark.asyncio
async def test_server_error_with_exchange_message_is_a_rejection():
    def handler(request):
        return httpx.Response(500, json={"code": 700003, "msg": "Timestamp for this request is outside of the recvWindow"})

    async with _client(handler) as client:
        with pytest.raises(ExchangeRejected, match="recvWindow") as excinfo:
            await client.place_order(ORDER)
    assert not isinstance(excinfo.value, ExchangeUnavailable)


@pytest.mark.asyncio
async def test_timeout_is_unavailable_and_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ReadTimeout("timed out", request=request)

    async with _client(handler) as client:
        with pytest.raises(ExchangeUnavailable, match="timed out"):
            await client.place_order(ORDER)

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_connection_error_is_unavailable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(ExchangeUnavailable, match="MEXC request failed"):
            await client.place_order(ORDER)


@pytest.mark.asyncio
async def test_secret_and_signature_never_logged(caplog):
    def handler(request):
        return httpx.Response(200, json={"orderId": "1", "status": "NEW"})

    with caplog.at_level(logging.DEBUG):
        async with _client(handler, secret="super-secret-value") as client:
            await client.place_order(ORDER)

    assert "super-secret-value" not in caplog.text
    assert "signature=" not in caplog.text


@pytest.mark.asyncio
async def test_test_connection_signs_account_request():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"canTrade": True, "balances": []})

    async with _client(handler) as client:
        result = await client.test_connection()

    assert result["canTrade"] is True
    request = seen[0]
    assert request.method == "GET"
    assert request.url.path == "/api/v3/account"
    params = dict(parse_qsl(request.url.query.decode()))
    assert set(params) == {"timestamp", "signature"}
