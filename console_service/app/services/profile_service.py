"""내 프로필 화면용 집계.

유저/결제/게임/토큰 잔액을 동시에 불러와, 화면에 필요한 통계를 순수 함수로 계산한다.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime

from gameroom_common.models.game import Game
from gameroom_common.models.payment import Payment
from gameroom_common.models.token_balance import TokenBalance
from gameroom_common.models.user import User

from ..exceptions import ClientValidationError
from ..repositories.interfaces import (
    GameRepositoryInterface,
    PaymentRepositoryInterface,
    TokenRepositoryInterface,
    UserRepositoryInterface,
)
from ..session import Session


NEXT_MILESTONE = 25
PROFILE_GAMES_LIMIT = 100


@dataclass(slots=True)
class ProfileStats:
    total_tokens: int = 0
    total_spent: float = 0.0
    total_purchases: int = 0
    successful_purchases: int = 0
    member_since: datetime | None = None
    favorite_category: str = "None"
    games_owned: int = 0
    achievements_unlocked: int = 0
    total_achievements: int = 0


@dataclass(slots=True)
class GameTokenSummary:
    """게임 x 매장 단위 요약."""

    game_id: str
    game_name: str
    game_image: str
    category: str
    location: str
    total_tokens: int = 0
    total_spent: float = 0.0
    purchases: int = 0
    last_purchase: datetime | None = None
    next_milestone: int = NEXT_MILESTONE

    @property
    def progress(self) -> float:
        return min(self.total_tokens / self.next_milestone * 100, 100.0)


@dataclass(slots=True)
class Achievement:
    id: str
    title: str
    description: str
    unlocked: bool
    progress: float
    achieved_at: datetime | None = None


@dataclass(slots=True)
class ProfileSnapshot:
    user: User
    payments: list[Payment] = field(default_factory=list)
    games: list[Game] = field(default_factory=list)
    balances: list[TokenBalance] = field(default_factory=list)

    @property
    def successful_payments(self) -> list[Payment]:
        return [p for p in self.payments if p.is_succeeded]


def _favorite_category(balances: Sequence[TokenBalance], games_by_id: dict[str, Game]) -> str:
    weights: dict[str, int] = defaultdict(int)
    for balance in balances:
        game = games_by_id.get(balance.game.id)
        if game is not None:
            weights[game.category] += balance.tokens
    if not weights:
        return "None"
    # 동률이면 먼저 집계된 카테고리를 유지한다.
    return max(weights.items(), key=lambda item: item[1])[0]


def calculate_achievements(snapshot: ProfileSnapshot) -> list[Achievement]:
    succeeded = snapshot.successful_payments
    total_spent = sum(p.amount for p in succeeded)
    total_tokens = sum(b.tokens for b in snapshot.balances)
    unique_games = len({b.game.id for b in snapshot.balances})
    first = min(
        (p for p in succeeded if p.created_at is not None),
        key=lambda p: p.created_at,
        default=None,
    )

    return [
        Achievement(
            id="first-purchase",
            title="First Purchase",
            description="Made your first token purchase",
            unlocked=bool(succeeded),
            progress=100.0 if succeeded else 0.0,
            achieved_at=first.created_at if first else None,
        ),
        Achievement(
            id="loyal-player",
            title="Loyal Player",
            description="Purchased tokens for 3 different games",
            unlocked=unique_games >= 3,
            progress=min(unique_games / 3 * 100, 100.0),
        ),
        Achievement(
            id="token-collector",
            title="Token Collector",
            description="Own 50+ tokens across all games",
            unlocked=total_tokens >= 50,
            progress=min(total_tokens / 50 * 100, 100.0),
        ),
        Achievement(
            id="big-spender",
            title="Big Spender",
            description="Spent $100+ on tokens",
            unlocked=total_spent >= 100,
            progress=min(total_spent / 100 * 100, 100.0),
        ),
    ]


def calculate_profile_stats(snapshot: ProfileSnapshot) -> ProfileStats:
    succeeded = snapshot.successful_payments
    games_by_id = {game.id: game for game in snapshot.games}
    achievements = calculate_achievements(snapshot)

    return ProfileStats(
        total_tokens=sum(b.tokens for b in snapshot.balances),
        total_spent=sum(p.amount for p in succeeded),
        total_purchases=len(snapshot.payments),
        successful_purchases=len(succeeded),
        member_since=snapshot.user.created_at,
        favorite_category=_favorite_category(snapshot.balances, games_by_id),
        games_owned=len({b.game.id for b in snapshot.balances}),
        achievements_unlocked=sum(1 for a in achievements if a.unlocked),
        total_achievements=len(achievements),
    )


def calculate_game_summaries(snapshot: ProfileSnapshot) -> list[GameTokenSummary]:
    """잔액이 있는 (게임, 매장) 마다 토큰/지출/구매 횟수/마지막 구매일을 모은다.

    카탈로그에 없는 게임의 잔액과, 잔액 행이 없는 결제는 집계하지 않는다.
    """
    games_by_id = {game.id: game for game in snapshot.games}
    summaries: dict[tuple[str, str], GameTokenSummary] = {}

    for balance in snapshot.balances:
        game = games_by_id.get(balance.game.id)
        if game is None:
            continue
        key = (balance.game.id, balance.location)
        summary = summaries.get(key)
        if summary is None:
            summary = GameTokenSummary(
                game_id=balance.game.id,
                game_name=balance.game.name or game.name,
                game_image=game.image,
                category=game.category,
                location=balance.location,
            )
            summaries[key] = summary
        summary.total_tokens = balance.tokens

    for payment in snapshot.successful_payments:
        summary = summaries.get((payment.game.id, payment.location))
        if summary is None:
            continue
        summary.total_spent += payment.amount
        summary.purchases += 1
        if payment.created_at is not None and (
            summary.last_purchase is None or payment.created_at > summary.last_purchase
        ):
            summary.last_purchase = payment.created_at

    return list(summaries.values())


class ProfileService:
    def __init__(
        self,
        session: Session,
        user_repo: UserRepositoryInterface,
        payment_repo: PaymentRepositoryInterface,
        game_repo: GameRepositoryInterface,
        token_repo: TokenRepositoryInterface,
    ) -> None:
        self._session = session
        self._user_repo = user_repo
        self._payment_repo = payment_repo
        self._game_repo = game_repo
        self._token_repo = token_repo

    async def load(self, *, return_to: str = "/profile") -> ProfileSnapshot:
        """현재 유저 확인 후 결제/게임/잔액을 동시에 불러온다.

        로그인하지 않은 상태면 돌아올 URL 을 세션에 남기고 ClientValidationError 를 던진다.
        """
        if not self._session.is_authenticated:
            self._session.redirect_url = return_to
            raise ClientValidationError("Please log in to view your profile")

        user = await self._user_repo.me()
        payments, games_page, balances = await asyncio.gather(
            self._payment_repo.my_payments(),
            self._game_repo.list({"limit": PROFILE_GAMES_LIMIT}),
            self._token_repo.my_balances(),
        )
        return ProfileSnapshot(
            user=user,
            payments=payments,
            games=list(games_page.items),
            balances=balances,
        )
