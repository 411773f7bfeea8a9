import json
import os
import tempfile

import httpx
import pytest

# keep per-module log files out of the working tree
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "trading-bot-test-logs"))

from controllers.flow_controller import FlowController
from models.session import UserSession
from models.settings import TradingSettings
from services.ai_chat_service import AIChatService
from services.aggregation_service import AggregationService
from services.backend_client import BackendClient
from services.engine_service import EngineService
from utils.config import load_config

USER_ID = 42
SOL_TOKEN = "So11111111111111111111111111111111111111112"
OTHER_TOKEN = "7GCihgDB8fe6KNjn2MYtkzZcRjQy3t9GHdC8uHYmW2hr"
EVM_TOKEN = "0x" + "ab" * 20


class EngineStub:
    """Canned trading engine behind ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.routes = {}
        self.requests = []

    def on(self, method, path, json=None, status=200, text=None, raises=None):
        self.routes[(method, path)] = (status, json, text, raises)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key not in self.routes:
            return httpx.Response(404, json={"success": False, "error": f"no route {key}"})
        status, payload, text, raises = self.routes[key]
        if raises is not None:
            raise raises("simulated failure", request=request)
        if text is not None:
            return httpx.Response(status, text=text)
        return httpx.Response(status, json=payload)

    def calls(self, method, path):
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def last_body(self, method, path):
        return json.loads(self.calls(method, path)[-1].content)


@pytest.fixture
def stub():
    return EngineStub()


@pytest.fixture
def backend(stub):
    client = httpx.AsyncClient(transport=httpx.MockTransport(stub.handler))
    return BackendClient(base_url="http://engine.test", timeout=5, client=client)


@pytest.fixture
def engine(backend):
    return EngineService(backend)


@pytest.fixture
def aggregation(engine):
    return AggregationService(engine)


@pytest.fixture
def controller(engine, aggregation, backend):
    return FlowController(engine=engine, aggregation=aggregation, ai=AIChatService(client=backend), config=load_config())


@pytest.fixture
def session():
    return UserSession(user_id=USER_ID, settings=TradingSettings())


@pytest.fixture
def funded(stub):
    """A user with a Solana wallet holding 2 SOL and no positions."""
    stub.on("GET", f"/api/wallets/{USER_ID}", json=[{"chain": "solana", "address": "WaLLet1111", "created_at": 0}])
    stub.on("GET", f"/api/wallet/balance/{USER_ID}/solana", json={"native_balance": "2.0", "total_usd": 300.0})
    stub.on("GET", f"/api/positions/{USER_ID}", json=[])
    for token in (SOL_TOKEN, OTHER_TOKEN):
        stub.on(
            "GET",
            f"/api/price/solana/{token}",
            json={"success": True, "price": {"price_usd": 0.0012, "price_change_24h": 5.5, "volume_24h": 1000, "liquidity": 50000}},
        )
    stub.on(
        "POST",
        "/api/security-check",
        json={"is_safe": True, "honeypot": False, "rug_score": 12, "liquidity_usd": 50000, "holder_count": 321, "warnings": []},
    )
    return stub


def position_payload(token=SOL_TOKEN, amount="1000", position_id="pos-1"):
    return {
        "position": {
            "position_id": position_id,
            "user_id": USER_ID,
            "chain": "solana",
            "token": token,
            "amount": amount,
            "entry_price": 0.001,
            "current_price": 0.002,
            "take_profit_percent": 100,
            "stop_loss_percent": -40,
            "timestamp": 1700000000,
        },
        "pnl_percent": 100.0,
        "pnl_usd": 12.5,
        "should_close": False,
        "reason": None,
    }
