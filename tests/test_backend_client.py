"""Tests for the engine HTTP client."""
import logging

import httpx
import pytest

from enums.error_kind import ErrorKind


@pytest.mark.asyncio
async def test_success_returns_decoded_json(stub, backend):
    stub.on("GET", "/api/gas/solana", json={"standard": 5000, "unit": "lamports"})

    result = await backend.call("/api/gas/solana")

    assert result.ok
    assert result.data == {"standard": 5000, "unit": "lamports"}
    assert result.error is None


@pytest.mark.asyncio
async def test_post_sends_json_body(stub, backend):
    stub.on("POST", "/api/sell", json={"success": True, "tx_hash": "abc"})

    await backend.call("/api/sell", "POST", {"user_id": 1, "position_id": "p", "percent": 50.0})

    assert stub.last_body("POST", "/api/sell") == {"user_id": 1, "position_id": "p", "percent": 50.0}


@pytest.mark.asyncio
async def test_non_2xx_with_risk_body(stub, backend):
    stub.on("POST", "/api/buy", status=400, json={"error": "Token Risk: score 12"})

    result = await backend.call("/api/buy", "POST", {})

    assert not result.ok
    assert result.error.kind is ErrorKind.SECURITY_REJECTION
    assert result.error.status == 400


@pytest.mark.asyncio
async def test_non_json_error_body_is_escaped(stub, backend):
    stub.on("GET", "/api/portfolio/1", status=500, text="<h1>Internal</h1>" + "y" * 400)

    result = await backend.call("/api/portfolio/1")

    assert result.error.kind is ErrorKind.UPSTREAM_SYSTEM_ERROR
    assert "<h1>" not in result.error.message
    assert result.error.message.startswith("&lt;h1&gt;")
    assert len(result.error.message) <= 200


@pytest.mark.asyncio
async def test_unparseable_success_body(stub, backend):
    stub.on("GET", "/api/history/1", text="<html>not json</html>")

    result = await backend.call("/api/history/1")

    assert not result.ok
    assert result.error.message.startswith("Failed to parse JSON. Response:")
    assert "&lt;html&gt;" in result.error.message


@pytest.mark.asyncio
async def test_success_false_is_a_failure(stub, backend):
    stub.on("POST", "/api/buy", json={"success": False, "error": "Insufficient balance for swap"})

    result = await backend.call("/api/buy", "POST", {})

    assert not result.ok
    assert result.error.kind is ErrorKind.INSUFFICIENT_BALANCE


@pytest.mark.asyncio
async def test_error_field_without_success_flag_is_a_failure(stub, backend):
    stub.on("GET", "/api/wallet/balance/1/eth", json={"error": "RPC unavailable"})

    result = await backend.call("/api/wallet/balance/1/eth")

    assert not result.ok


@pytest.mark.asyncio
@pytest.mark.parametrize("exc", [httpx.ReadTimeout, httpx.ConnectTimeout, httpx.ConnectError])
async def test_transport_failures_become_network_timeout(stub, backend, exc):
    stub.on("GET", "/api/positions/1", raises=exc)

    result = await backend.call("/api/positions/1")

    assert not result.ok
    assert result.error.kind is ErrorKind.NETWORK_TIMEOUT
    assert result.error.transient


@pytest.mark.asyncio
async def test_no_retry_on_failure(stub, backend):
    stub.on("GET", "/api/positions/1", status=503, text="busy")

    await backend.call("/api/positions/1")

    assert len(stub.calls("GET", "/api/positions/1")) == 1


@pytest.mark.asyncio
async def test_security_rejection_is_not_logged(stub, backend, caplog):
    stub.on("POST", "/api/buy", status=400, json={"error": "Token Risk: score 3"})
    caplog.set_level(logging.WARNING, logger="services.backend_client")

    await backend.call("/api/buy", "POST", {})

    assert not [r for r in caplog.records if r.name == "services.backend_client"]


@pytest.mark.asyncio
async def test_user_errors_log_a_warning(stub, backend, caplog):
    stub.on("GET", "/api/wallets/1", status=404, json={"error": "Wallet not found"})
    caplog.set_level(logging.WARNING, logger="services.backend_client")

    await backend.call("/api/wallets/1")

    records = [r for r in caplog.records if r.name == "services.backend_client"]
    assert records and records[0].levelno == logging.WARNING
