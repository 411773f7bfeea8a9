"""
Typed access to the trading engine endpoints.

Every method returns the ``ApiResult`` of ``BackendClient.call`` untouched;
turning failures into UI is the caller's job.
"""

from __future__ import annotations

from typing import Any, List

from schemas.api_schema import ApiResult
from schemas.trade_schema import (
    BundleAddRequest,
    BuyRequest,
    GridCreateRequest,
    SellRequest,
    WhaleAlertRequest,
)
from services.backend_client import BackendClient, get_backend_client
from utils.logger import log_function


class EngineService:
    def __init__(self, client: BackendClient | None = None) -> None:
        self.client = client or get_backend_client()

    # wallets

    @log_function
    async def get_wallets(self, user_id: int) -> ApiResult:
        return await self.client.call(f"/api/wallets/{user_id}")

    @log_function
    async def get_balance(self, user_id: int, chain: str) -> ApiResult:
        return await self.client.call(f"/api/wallet/balance/{user_id}/{chain}")

    @log_function
    async def generate_wallet(self, user_id: int, chain: str) -> ApiResult:
        return await self.client.call(
            "/api/wallet/generate", "POST", {"user_id": user_id, "chain": chain}
        )

    @log_function(log_args=False)
    async def import_wallet(self, user_id: int, chain: str, private_key: str) -> ApiResult:
        return await self.client.call(
            "/api/wallet/import",
            "POST",
            {"user_id": user_id, "chain": chain, "private_key": private_key},
        )

    # market data

    @log_function
    async def get_price(self, chain: str, token: str) -> ApiResult:
        return await self.client.call(f"/api/price/{chain}/{token}")

    @log_function
    async def security_check(self, chain: str, token: str) -> ApiResult:
        return await self.client.call("/api/security-check", "POST", {"chain": chain, "token": token})

    @log_function
    async def check_token(self, chain: str, token: str) -> ApiResult:
        """Combined price + security analysis."""
        return await self.client.call(f"/api/check/{chain}/{token}")

    @log_function
    async def get_gas(self, chain: str) -> ApiResult:
        return await self.client.call(f"/api/gas/{chain}")

    # trading

    @log_function
    async def buy(self, request: BuyRequest) -> ApiResult:
        return await self.client.call("/api/buy", "POST", request.to_payload())

    @log_function
    async def sell(self, request: SellRequest) -> ApiResult:
        return await self.client.call("/api/sell", "POST", request.to_payload())

    @log_function
    async def get_positions(self, user_id: int) -> ApiResult:
        return await self.client.call(f"/api/positions/{user_id}")

    @log_function
    async def get_portfolio(self, user_id: int) -> ApiResult:
        return await self.client.call(f"/api/portfolio/{user_id}")

    @log_function
    async def get_history(self, user_id: int) -> ApiResult:
        return await self.client.call(f"/api/history/{user_id}")

    @log_function
    async def get_alerts(self, user_id: int) -> ApiResult:
        return await self.client.call(f"/api/alerts/{user_id}")

    @log_function
    async def import_data(self, user_id: int, data_type: str, data: List[Any]) -> ApiResult:
        return await self.client.call(
            "/api/import", "POST", {"user_id": user_id, "data_type": data_type, "data": data}
        )

    # bundler

    @log_function
    async def bundler_add(self, request: BundleAddRequest) -> ApiResult:
        return await self.client.call("/api/bundler/add", "POST", request.to_payload())

    @log_function
    async def bundler_status(self, user_id: int, chain: str) -> ApiResult:
        return await self.client.call(f"/api/bundler/status/{user_id}/{chain}")

    @log_function
    async def bundler_execute(self, user_id: int, chain: str) -> ApiResult:
        return await self.client.call(f"/api/bundler/execute/{user_id}/{chain}", "POST")

    # analytics

    @log_function
    async def create_whale_alert(self, request: WhaleAlertRequest) -> ApiResult:
        return await self.client.call("/api/whales/alert", "POST", request.to_payload())

    @log_function
    async def whale_stats(self) -> ApiResult:
        return await self.client.call("/api/whales/stats")

    @log_function
    async def leaderboard(self, period: str) -> ApiResult:
        return await self.client.call(f"/api/leaderboard/{period}")

    @log_function
    async def create_grid(self, request: GridCreateRequest) -> ApiResult:
        return await self.client.call("/api/grid/create", "POST", request.to_payload())
