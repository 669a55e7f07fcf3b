from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from gameroom_common.models.game import Game
from gameroom_common.models.payment import Payment, PaymentStats
from gameroom_common.models.user import UserStats

from ..repositories.interfaces import (
    GameRepositoryInterface,
    PaymentRepositoryInterface,
    UserRepositoryInterface,
)


RECENT_LIMIT = 5


@dataclass(slots=True)
class AdminOverview:
    recent_games: list[Game] = field(default_factory=list)
    recent_payments: list[Payment] = field(default_factory=list)
    user_stats: UserStats = field(default_factory=UserStats)
    payment_stats: PaymentStats = field(default_factory=PaymentStats)
    total_games: int = 0


class OverviewService:
    """관리자 대시보드 첫 화면. 네 가지 조회를 동시에 보낸다."""

    def __init__(
        self,
        game_repo: GameRepositoryInterface,
        payment_repo: PaymentRepositoryInterface,
        user_repo: UserRepositoryInterface,
    ) -> None:
        self._game_repo = game_repo
        self._payment_repo = payment_repo
        self._user_repo = user_repo

    async def load(self, recent_limit: int = RECENT_LIMIT) -> AdminOverview:
        games, payments, user_stats, payment_stats = await asyncio.gather(
            self._game_repo.list({"limit": recent_limit, "page": 1}),
            self._payment_repo.list_all(
                {
                    "limit": recent_limit,
                    "page": 1,
                    "sortBy": "createdAt",
                    "sortOrder": "desc",
                }
            ),
            self._user_repo.stats(),
            self._payment_repo.stats(),
        )
        return AdminOverview(
            recent_games=list(games.items),
            recent_payments=list(payments.items),
            user_stats=user_stats,
            payment_stats=payment_stats,
            total_games=games.pagination.total,
        )
