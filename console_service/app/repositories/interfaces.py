from __future__ import annotations

from typing import Any, Protocol

from gameroom_common.models.game import Game, GameInput
from gameroom_common.models.payment import Payment, PaymentIntent, PaymentStats
from gameroom_common.models.promotion import Event, EventInput, Winner, WinnerInput
from gameroom_common.models.token_balance import CashierTokenOverview, TokenBalance
from gameroom_common.models.user import (
    Credentials,
    SignupInput,
    User,
    UserStats,
    UserUpdateInput,
)
from gameroom_common.schemas.pagination import Page


QueryParams = dict[str, Any]


class GameRepositoryInterface(Protocol):
    """GameRepository가 따라야 할 최소한의 계약.

    Service 레이어는 이 인터페이스에만 의존하고, HTTP 세부 구현은 몰라도 된다.
    """

    async def list(self, params: QueryParams) -> Page[Game]:  # pragma: no cover - Protocol
        ...

    async def get(self, game_id: str) -> Game:  # pragma: no cover - Protocol
        ...

    async def create(self, data: GameInput) -> Game:  # pragma: no cover - Protocol
        ...

    async def update(
        self, game_id: str, data: GameInput
    ) -> Game:  # pragma: no cover - Protocol
        ...

    async def delete(self, game_id: str) -> None:  # pragma: no cover - Protocol
        ...


class UserRepositoryInterface(Protocol):
    """인증/유저 관리 엔드포인트(/auth/...) 계약."""

    async def login(
        self, credentials: Credentials
    ) -> tuple[User, str]:  # pragma: no cover - Protocol
        ...

    async def signup(
        self, data: SignupInput
    ) -> tuple[User, str]:  # pragma: no cover - Protocol
        ...

    async def me(self) -> User:  # pragma: no cover - Protocol
        ...

    async def list(self, params: QueryParams) -> Page[User]:  # pragma: no cover - Protocol
        ...

    async def stats(self) -> UserStats:  # pragma: no cover - Protocol
        ...

    async def update(
        self, user_id: str, data: UserUpdateInput
    ) -> User:  # pragma: no cover - Protocol
        ...

    async def delete(self, user_id: str) -> None:  # pragma: no cover - Protocol
        ...

    async def set_active(
        self, user_id: str, is_active: bool
    ) -> User:  # pragma: no cover - Protocol
        ...


class TokenAdjusterInterface(Protocol):
    """잔액을 delta 만큼 조정하고, 서버가 확정한 토큰 수량을 반환한다.

    서버는 절대값이 아니라 delta 로 잔액을 변경하며, 0 미만으로는 내려가지 않는다.
    """

    async def adjust(
        self, user_id: str, game_id: str, location: str, delta: int
    ) -> int:  # pragma: no cover - Protocol
        ...


class TokenRepositoryInterface(TokenAdjusterInterface, Protocol):
    async def my_balances(self) -> list[TokenBalance]:  # pragma: no cover - Protocol
        ...

    async def user_balances(
        self, user_id: str
    ) -> list[TokenBalance]:  # pragma: no cover - Protocol
        ...

    async def list_all(
        self, params: QueryParams
    ) -> Page[TokenBalance]:  # pragma: no cover - Protocol
        ...


class CashierTokenRepositoryInterface(TokenAdjusterInterface, Protocol):
    async def overview(self) -> CashierTokenOverview:  # pragma: no cover - Protocol
        ...


class PaymentRepositoryInterface(Protocol):
    async def create_payment_intent(
        self, game_id: str, package_index: int, location: str
    ) -> PaymentIntent:  # pragma: no cover - Protocol
        ...

    async def confirm_payment(
        self, payment_intent_id: str
    ) -> Payment:  # pragma: no cover - Protocol
        ...

    async def get(self, payment_id: str) -> Payment:  # pragma: no cover - Protocol
        ...

    async def get_by_order(self, order_id: str) -> Payment:  # pragma: no cover - Protocol
        ...

    async def my_payments(self) -> list[Payment]:  # pragma: no cover - Protocol
        ...

    async def list_all(
        self, params: QueryParams
    ) -> Page[Payment]:  # pragma: no cover - Protocol
        ...

    async def stats(self) -> PaymentStats:  # pragma: no cover - Protocol
        ...


class EventRepositoryInterface(Protocol):
    async def list_all(self) -> list[Event]:  # pragma: no cover - Protocol
        ...

    async def list_public(self) -> list[Event]:  # pragma: no cover - Protocol
        ...

    async def get(self, event_id: str) -> Event:  # pragma: no cover - Protocol
        ...

    async def create(self, data: EventInput) -> Event:  # pragma: no cover - Protocol
        ...

    async def update(
        self, event_id: str, data: EventInput
    ) -> Event:  # pragma: no cover - Protocol
        ...

    async def delete(self, event_id: str) -> None:  # pragma: no cover - Protocol
        ...


class WinnerRepositoryInterface(Protocol):
    async def list_all(self) -> list[Winner]:  # pragma: no cover - Protocol
        ...

    async def list_public(self) -> list[Winner]:  # pragma: no cover - Protocol
        ...

    async def get(self, winner_id: str) -> Winner:  # pragma: no cover - Protocol
        ...

    async def create(self, data: WinnerInput) -> Winner:  # pragma: no cover - Protocol
        ...

    async def update(
        self, winner_id: str, data: WinnerInput
    ) -> Winner:  # pragma: no cover - Protocol
        ...

    async def delete(self, winner_id: str) -> None:  # pragma: no cover - Protocol
        ...
