"""
Token view aggregation.

Price, security, balance and positions are fetched concurrently and joined
once all of them settled. A failed lookup only leaves its own field empty.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any, List, Optional, Tuple

from pydantic import ValidationError

from enums.chain import Chain
from enums.error_kind import ErrorKind
from models.position import PositionStatus, find_position
from models.token_view import BalanceInfo, PriceInfo, SecurityInfo, TokenView
from schemas.api_schema import ApiResult, ClassifiedError
from services.engine_service import EngineService
from utils.logger import log_function, logger_manager

logger = logger_manager.setup_logger(__name__)


def _malformed(source: str) -> ClassifiedError:
    return ClassifiedError(kind=ErrorKind.UNKNOWN, message=f"Malformed {source} response")


def _positions_payload(data: Any) -> List[Any]:
    if isinstance(data, dict):
        data = data.get("positions") or []
    return data if isinstance(data, list) else []


class AggregationService:
    def __init__(self, engine: EngineService | None = None) -> None:
        self.engine = engine or EngineService()

    async def balance(self, user_id: int, chain: Chain) -> Tuple[Optional[BalanceInfo], Optional[ClassifiedError]]:
        """Fresh wallet balance, never cached."""
        result = await self.engine.get_balance(user_id, chain.value)
        if not result.ok:
            return None, result.error
        try:
            return BalanceInfo.model_validate(result.data), None
        except ValidationError as e:
            logger.warning(f"balance payload for {user_id}/{chain.value} rejected: {e}")
            return None, _malformed("balance")

    async def positions(self, user_id: int) -> Tuple[List[PositionStatus], Optional[ClassifiedError]]:
        result = await self.engine.get_positions(user_id)
        if not result.ok:
            return [], result.error
        if not isinstance(result.data, (list, dict)):
            return [], _malformed("positions")
        items = []
        for raw in _positions_payload(result.data):
            try:
                items.append(PositionStatus.model_validate(raw))
            except ValidationError as e:
                # one bad record must not hide the others
                logger.warning(f"skipping malformed position for {user_id}: {e}")
        return items, None

    async def _price(self, chain: Chain, token: str) -> Tuple[Optional[PriceInfo], Optional[ClassifiedError]]:
        result = await self.engine.get_price(chain.value, token)
        return self._model(result, PriceInfo.from_payload, "price")

    async def _security(self, chain: Chain, token: str) -> Tuple[Optional[SecurityInfo], Optional[ClassifiedError]]:
        result = await self.engine.security_check(chain.value, token)
        return self._model(result, SecurityInfo.model_validate, "security")

    @staticmethod
    def _model(result: ApiResult, build, source: str):
        if not result.ok:
            return None, result.error
        if not isinstance(result.data, dict):
            return None, _malformed(source)
        try:
            return build(result.data), None
        except ValidationError as e:
            logger.warning(f"{source} payload rejected: {e}")
            return None, _malformed(source)

    @log_function
    async def build_token_view(self, user_id: int, chain: Chain, token: str) -> TokenView:
        view = TokenView(token=token, chain=chain)
        sources = ("price", "security", "balance", "positions")
        outcomes = await asyncio.gather(
            self._price(chain, token),
            self._security(chain, token),
            self.balance(user_id, chain),
            self.positions(user_id),
            return_exceptions=True,
        )

        for source, outcome in zip(sources, outcomes):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, asyncio.CancelledError):
                    raise outcome
                logger.error(f"{source} lookup for {token} crashed: {outcome!r}")
                view.errors[source] = ClassifiedError(kind=ErrorKind.UNKNOWN, message=f"{source} lookup failed")
                continue
            value, error = outcome
            if error is not None:
                logger.info(f"{source} unavailable for {token} on {chain.value}: {error.kind.value}")
                view.errors[source] = error
                continue
            if source == "positions":
                view.position = find_position(value, token)
            else:
                setattr(view, source, value)
        return view

    async def native_balance(self, user_id: int, chain: Chain) -> Tuple[Decimal, Optional[ClassifiedError]]:
        info, error = await self.balance(user_id, chain)
        return (info.native_balance if info else Decimal("0")), error
