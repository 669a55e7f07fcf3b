"""토큰 잔액 레포지토리.

관리자와 캐셔는 서로 다른 엔드포인트로 잔액을 조정하지만, 둘 다
delta 기반이고 갱신된 잔액(`data.balance`)을 돌려준다는 점은 같다.
"""

from __future__ import annotations

from typing import Any

from gameroom_common.models.token_balance import CashierTokenOverview, TokenBalance
from gameroom_common.schemas.pagination import Page

from ..exceptions import ApiResponseError
from .api_client import ApiClient, parse_list, parse_model, parse_page, unwrap_data
from .interfaces import (
    CashierTokenRepositoryInterface,
    QueryParams,
    TokenRepositoryInterface,
)


ADJUST_ERROR_MESSAGE = "Failed to adjust token balance"


def _adjusted_tokens(body: Any, error_message: str) -> int:
    """조정 응답의 `data.balance.tokens`. 값이 없거나 정수가 아니면 확정으로 보지 않는다."""
    data = unwrap_data(body)
    balance = data.get("balance", data) if isinstance(data, dict) else None
    tokens = balance.get("tokens") if isinstance(balance, dict) else None
    # bool 은 int 의 하위 타입이지만 잔액 값이 아니다.
    if isinstance(tokens, bool) or not isinstance(tokens, int) or tokens < 0:
        raise ApiResponseError(200, error_message)
    return tokens


class TokenRepository(TokenRepositoryInterface):
    """관리자/본인용 토큰 잔액 HTTP 접근 레이어."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def my_balances(self) -> list[TokenBalance]:
        body = await self._client.get(
            "/auth/me/tokens",
            error_message="Failed to fetch token balances",
        )
        return parse_list(body, "balances", TokenBalance)

    async def user_balances(self, user_id: str) -> list[TokenBalance]:
        body = await self._client.get(
            f"/auth/{user_id}/tokens",
            error_message="Failed to fetch user token balances",
        )
        return parse_list(body, "balances", TokenBalance)

    async def list_all(self, params: QueryParams) -> Page[TokenBalance]:
        body = await self._client.get(
            "/auth/admin/tokens",
            params=params,
            error_message="Failed to fetch token balances",
        )
        return parse_page(body, "balances", TokenBalance)

    async def adjust(self, user_id: str, game_id: str, location: str, delta: int) -> int:
        body = await self._client.post(
            f"/auth/{user_id}/tokens/adjust",
            json={"gameId": game_id, "location": location, "delta": delta},
            error_message=ADJUST_ERROR_MESSAGE,
        )
        return _adjusted_tokens(body, ADJUST_ERROR_MESSAGE)


class CashierTokenRepository(CashierTokenRepositoryInterface):
    """캐셔 화면용 토큰 잔액 HTTP 접근 레이어. 조회/조정 범위는 캐셔의 담당 매장으로 제한된다."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def overview(self) -> CashierTokenOverview:
        body = await self._client.get(
            "/auth/cashier/tokens",
            error_message="Failed to fetch cashier token balances",
        )
        return parse_model(body, "overview", CashierTokenOverview)

    async def adjust(self, user_id: str, game_id: str, location: str, delta: int) -> int:
        body = await self._client.post(
            "/auth/cashier/tokens/adjust",
            json={
                "userId": user_id,
                "gameId": game_id,
                "location": location,
                "delta": delta,
            },
            error_message=ADJUST_ERROR_MESSAGE,
        )
        return _adjusted_tokens(body, ADJUST_ERROR_MESSAGE)
