"""
Client for the AI assistant service.

Uses its own ``BackendClient`` pointed at ``ELIZA_API_URL`` so failures are
classified the same way as engine failures.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from schemas.api_schema import ApiResult
from services.backend_client import BackendClient
from utils.config import ELIZA_API_URL
from utils.logger import log_function


class AIChatService:
    def __init__(self, client: BackendClient | None = None) -> None:
        self.client = client or BackendClient(base_url=ELIZA_API_URL)

    @log_function
    async def chat(self, user_id: int, message: str, context: Optional[Dict[str, Any]] = None) -> ApiResult:
        return await self.client.call(
            "/api/chat", "POST", {"user_id": user_id, "message": message, "context": context or {}}
        )

    @log_function
    async def analyze_token(self, chain: str, token: str) -> ApiResult:
        return await self.client.call("/api/analyze-token", "POST", {"chain": chain, "token": token})
