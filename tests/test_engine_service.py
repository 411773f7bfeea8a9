"""Engine endpoint paths and request bodies."""
from decimal import Decimal

import pytest

from conftest import SOL_TOKEN, USER_ID
from schemas.trade_schema import BundleAddRequest, BuyRequest, WhaleAlertRequest


@pytest.mark.asyncio
async def test_check_token_path(engine, stub):
    stub.on("GET", f"/api/check/solana/{SOL_TOKEN}", json={"price": {"price_usd": 1.0}, "security": {"is_safe": True}})

    result = await engine.check_token("solana", SOL_TOKEN)

    assert result.ok
    assert result.field("security") == {"is_safe": True}


@pytest.mark.asyncio
async def test_generate_wallet_body(engine, stub):
    stub.on("POST", "/api/wallet/generate", json={"success": True, "address": "WaLLet3333"})

    await engine.generate_wallet(USER_ID, "eth")

    assert stub.last_body("POST", "/api/wallet/generate") == {"user_id": USER_ID, "chain": "eth"}


@pytest.mark.asyncio
async def test_import_wallet_key_stays_out_of_logs(engine, stub, caplog):
    stub.on("POST", "/api/wallet/import", json={"success": True})

    with caplog.at_level("DEBUG"):
        await engine.import_wallet(USER_ID, "solana", "super-secret-key")

    assert stub.last_body("POST", "/api/wallet/import")["private_key"] == "super-secret-key"
    assert "super-secret-key" not in caplog.text


@pytest.mark.asyncio
async def test_bundler_execute_is_a_post_without_body(engine, stub):
    stub.on("POST", f"/api/bundler/execute/{USER_ID}/bsc", json={"success": True, "bundle_id": "b-1"})

    result = await engine.bundler_execute(USER_ID, "bsc")

    assert result.field("bundle_id") == "b-1"
    assert stub.calls("POST", f"/api/bundler/execute/{USER_ID}/bsc")[0].content == b""


def test_buy_payload_sends_amount_as_string():
    payload = BuyRequest(
        user_id=1, chain="solana", token=SOL_TOKEN, amount=Decimal("0.25"),
        slippage=10, take_profit=100, stop_loss=-40,
    ).to_payload()

    assert payload["amount"] == "0.25"
    assert payload["ignore_safety"] is False


def test_optional_fields_are_dropped():
    bundle = BundleAddRequest(
        user_id=1, chain="solana", tx_type="buy", token=SOL_TOKEN, amount=Decimal("1"), slippage=10, priority=None
    ).to_payload()
    alert = WhaleAlertRequest(user_id=1, min_size_usd=Decimal("50000"), chains=None).to_payload()

    assert "priority" not in bundle
    assert bundle["amount"] == 1.0
    assert alert == {"user_id": 1, "min_size_usd": 50000.0}
