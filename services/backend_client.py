"""
Async JSON/HTTP client for the trading engine.

``call`` never raises for HTTP, network or decoding problems and never
retries: every outcome comes back as an ``ApiResult``.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import httpx

from enums.error_kind import ErrorKind
from schemas.api_schema import ApiResult, ClassifiedError
from services.error_classifier import classify, classify_payload, escape_detail
from utils.config import BACKEND_TIMEOUT_SEC, ENGINE_API_URL
from utils.logger import logger_manager

logger = logger_manager.setup_logger(__name__)


class BackendClient:
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or ENGINE_API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else BACKEND_TIMEOUT_SEC
        self._client = client or httpx.AsyncClient(headers={"Content-Type": "application/json"})

    async def aclose(self) -> None:
        await self._client.aclose()

    async def call(
        self,
        endpoint: str,
        method: str = "GET",
        body: Any = None,
        timeout: float | None = None,
    ) -> ApiResult:
        timeout = timeout if timeout is not None else self.timeout
        url = f"{self.base_url}{endpoint}"
        kwargs: dict[str, Any] = {"timeout": timeout}
        if body is not None and method.upper() != "GET":
            kwargs["json"] = body

        try:
            response = await self._client.request(method.upper(), url, **kwargs)
        except httpx.TimeoutException:
            return self._failed(endpoint, ClassifiedError(
                kind=ErrorKind.NETWORK_TIMEOUT,
                message=f"API call timeout after {int(timeout * 1000)}ms",
            ))
        except httpx.ConnectError as e:
            return self._failed(endpoint, ClassifiedError(
                kind=ErrorKind.NETWORK_TIMEOUT,
                message=escape_detail(f"Connection refused: {e}"),
            ))
        except httpx.HTTPError as e:
            return self._failed(endpoint, classify(str(e)))

        text = response.text
        if not response.is_success:
            error = classify(f"API error ({response.status_code}): {text}", response.status_code)
            return self._failed(endpoint, error)

        try:
            data = json.loads(text)
        except ValueError:
            return self._failed(endpoint, ClassifiedError(
                kind=ErrorKind.UNKNOWN,
                status=response.status_code,
                message=f'Failed to parse JSON. Response: "{escape_detail(text)}..."',
            ))

        if isinstance(data, dict) and (
            data.get("success") is False or (data.get("error") and data.get("success") is not True)
        ):
            return self._failed(endpoint, classify_payload(data, response.status_code))

        return ApiResult.success(data)

    def _failed(self, endpoint: str, error: ClassifiedError) -> ApiResult:
        _log_failure(endpoint, error)
        return ApiResult.failure(error)


def _log_failure(endpoint: str, error: ClassifiedError) -> None:
    details = error.message
    payload = error.payload if isinstance(error.payload, dict) else {}
    warnings = payload.get("warnings") or []

    if "AccountNotFound" in details or any("AccountNotFound" in str(w) for w in warnings):
        logger.warning(f"[devnet] account not found ({endpoint})")
    elif error.kind is ErrorKind.SECURITY_REJECTION:
        # expected on risky tokens, the user sees it anyway
        return
    elif "No pairs found" in details:
        logger.warning(f"[devnet] no trading pairs found ({endpoint})")
    elif error.status is not None and 400 <= error.status < 500:
        logger.warning(f"API warning ({endpoint}): {error.status}. User error: {details}")
    else:
        logger.error(f"API error ({endpoint}) [{error.kind.value}]: {details}")
        if payload:
            logger.error(f"   details: {json.dumps(payload, indent=2, default=str)}")


_default_client: Optional[BackendClient] = None


def get_backend_client() -> BackendClient:
    """Process-wide client sharing one connection pool."""
    global _default_client
    if _default_client is None:
        _default_client = BackendClient()
    return _default_client
