"""토큰 잔액 도메인 모델.

잔액은 (유저, 게임, 매장) 조합마다 하나씩 존재한다.
`tokens` 는 확정된 수량, `pending_tokens` 는 결제는 끝났지만 예약 시각
(`tokens_scheduled_for`)에 지급될 수량이다.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import Field, model_validator

from gameroom_common.models.game import GameRef
from gameroom_common.models.user import UserRef
from gameroom_common.models.utils import WireModel, expand_ref_fields
from gameroom_common.types.datetime import UtcDateTime


@dataclass(frozen=True, slots=True)
class BalanceKey:
    """잔액 한 행을 식별하는 (user_id, game_id, location) 복합 키."""

    user_id: str
    game_id: str
    location: str

    def __str__(self) -> str:
        return f"{self.user_id}-{self.game_id}-{self.location}"


class TokenBalance(WireModel):
    id: str | None = Field(default=None, alias="_id")
    user: UserRef
    game: GameRef
    location: str
    tokens: int = Field(default=0, ge=0)
    pending_tokens: int = Field(default=0, ge=0, alias="pendingTokens")
    tokens_scheduled_for: UtcDateTime | None = Field(
        default=None, alias="tokensScheduledFor"
    )
    created_at: UtcDateTime | None = Field(default=None, alias="createdAt")
    updated_at: UtcDateTime | None = Field(default=None, alias="updatedAt")

    @model_validator(mode="before")
    @classmethod
    def _expand_refs(cls, data: Any) -> Any:
        # /auth/me/tokens 는 user 를 id 문자열로, adjust 응답은 game 까지 id 문자열로 내려준다.
        return expand_ref_fields(data, fields=["user", "game"])

    @property
    def key(self) -> BalanceKey:
        return BalanceKey(
            user_id=self.user.id,
            game_id=self.game.id,
            location=self.location,
        )

    @property
    def total_with_pending(self) -> int:
        """확정 토큰과 예약 지급 대기 토큰을 합친 수량."""
        return self.tokens + self.pending_tokens


class PendingTokenGrant(WireModel):
    """캐셔 화면에 노출되는 예약 지급 대기 건."""

    user: UserRef
    game: GameRef
    location: str
    tokens: int = 0
    scheduled_for: UtcDateTime | None = Field(default=None, alias="scheduledFor")

    @model_validator(mode="before")
    @classmethod
    def _expand_refs(cls, data: Any) -> Any:
        return expand_ref_fields(data, fields=["user", "game"])


class CashierTokenOverview(WireModel):
    """캐셔 토큰 조회 응답 (담당 매장 기준 잔액, 예약 지급 대기 건, 허용 매장)."""

    balances: list[TokenBalance] = Field(default_factory=list)
    pending_tokens: list[PendingTokenGrant] = Field(
        default_factory=list, alias="pendingTokens"
    )
    allowed_locations: list[str] = Field(
        default_factory=list, alias="allowedLocations"
    )
