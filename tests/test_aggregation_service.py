"""Tests for concurrent token view aggregation."""
from decimal import Decimal

import httpx
import pytest

from conftest import OTHER_TOKEN, SOL_TOKEN, USER_ID, position_payload
from enums.chain import Chain
from enums.error_kind import ErrorKind
from services import render_service as render


@pytest.mark.asyncio
async def test_all_sources_succeed(aggregation, funded):
    funded.on("GET", f"/api/positions/{USER_ID}", json=[position_payload()])

    view = await aggregation.build_token_view(USER_ID, Chain.SOLANA, SOL_TOKEN)

    assert view.errors == {}
    assert view.price.price_usd == pytest.approx(0.0012)
    assert view.security.is_safe and view.security.rug_score == 12
    assert view.balance.native_balance == Decimal("2.0")
    assert view.position.position.sell_id == "pos-1"


@pytest.mark.asyncio
async def test_security_timeout_keeps_the_rest(aggregation, funded):
    funded.on("POST", "/api/security-check", raises=httpx.ReadTimeout)

    view = await aggregation.build_token_view(USER_ID, Chain.SOLANA, SOL_TOKEN)

    assert view.price is not None
    assert view.balance is not None
    assert view.security is None
    assert view.errors["security"].kind is ErrorKind.NETWORK_TIMEOUT
    assert set(view.errors) == {"security"}

    reply = render.token_view(view, ["0.1", "0.5"])
    assert "Security check unavailable" in reply.text
    assert f"qb:{SOL_TOKEN}:0.5" in reply.callback_data()


@pytest.mark.asyncio
async def test_every_source_failing_still_builds_a_view(aggregation, stub):
    view = await aggregation.build_token_view(USER_ID, Chain.SOLANA, SOL_TOKEN)

    assert view.price is view.security is view.balance is view.position is None
    assert set(view.errors) == {"price", "security", "balance", "positions"}
    assert all(e.kind is ErrorKind.UPSTREAM_USER_ERROR for e in view.errors.values())

    text = render.token_view(view, []).text
    assert "Price:</b> unavailable" in text
    assert "Balance:</b> unavailable" in text


@pytest.mark.asyncio
async def test_security_request_body(aggregation, funded):
    await aggregation.build_token_view(USER_ID, Chain.SOLANA, SOL_TOKEN)
    assert funded.last_body("POST", "/api/security-check") == {"chain": "solana", "token": SOL_TOKEN}


@pytest.mark.asyncio
async def test_malformed_position_record_is_skipped(aggregation, funded):
    funded.on("GET", f"/api/positions/{USER_ID}", json=[{"unexpected": True}, position_payload()])

    view = await aggregation.build_token_view(USER_ID, Chain.SOLANA, SOL_TOKEN)

    assert view.position.position.sell_id == "pos-1"
    assert "positions" not in view.errors


@pytest.mark.asyncio
async def test_non_list_positions_payload_is_reported(aggregation, funded):
    funded.on("GET", f"/api/positions/{USER_ID}", json="oops")

    view = await aggregation.build_token_view(USER_ID, Chain.SOLANA, SOL_TOKEN)

    assert view.position is None
    assert view.errors["positions"].kind is ErrorKind.UNKNOWN
    assert view.price is not None


@pytest.mark.asyncio
async def test_position_lookup_matches_only_the_viewed_token(aggregation, funded):
    funded.on("GET", f"/api/positions/{USER_ID}", json={"positions": [position_payload(token=OTHER_TOKEN)]})

    view = await aggregation.build_token_view(USER_ID, Chain.SOLANA, SOL_TOKEN)

    assert view.position is None
    assert "positions" not in view.errors


@pytest.mark.asyncio
async def test_position_without_id_sells_by_token(aggregation, funded):
    payload = position_payload()
    del payload["position"]["position_id"]
    funded.on("GET", f"/api/positions/{USER_ID}", json=[payload])

    view = await aggregation.build_token_view(USER_ID, Chain.SOLANA, SOL_TOKEN)

    assert f"sell:{SOL_TOKEN}:50" in render.token_view(view, []).callback_data()


@pytest.mark.asyncio
async def test_native_balance_defaults_to_zero_on_failure(aggregation, stub):
    stub.on("GET", f"/api/wallet/balance/{USER_ID}/solana", status=503, text="Service Unavailable")

    balance, error = await aggregation.native_balance(USER_ID, Chain.SOLANA)

    assert balance == Decimal("0")
    assert error.kind is ErrorKind.UPSTREAM_SYSTEM_ERROR
