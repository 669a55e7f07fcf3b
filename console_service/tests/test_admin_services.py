from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from gameroom_common.models.game import Game, GameInput, GameLocation, TokenPackage
from gameroom_common.models.payment import Payment, PaymentStats
from gameroom_common.models.promotion import Event, EventInput, Winner, WinnerInput
from gameroom_common.models.user import User, UserStats, UserUpdateInput
from gameroom_common.schemas.pagination import Page, PaginationMeta
from console_service.app.exceptions import ClientValidationError
from console_service.app.services.games_service import GamesService, new_game_input, validate_game_input
from console_service.app.services.overview_service import OverviewService
from console_service.app.services.promotions_service import EventsService, WinnersService
from console_service.app.services.users_service import UsersService


class FakeUserRepository:
    def __init__(self) -> None:
        self.set_active_calls: list[tuple[str, bool]] = []
        self.update_calls: list[tuple[str, dict]] = []

    async def set_active(self, user_id: str, is_active: bool) -> User:
        self.set_active_calls.append((user_id, is_active))
        return User.model_validate({"_id": user_id, "isActive": is_active})

    async def update(self, user_id: str, data: UserUpdateInput) -> User:
        self.update_calls.append((user_id, data.to_wire()))
        return User.model_validate({"_id": user_id, **data.to_wire()})

    async def stats(self) -> UserStats:
        return UserStats(total_users=12, active_users=10)


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        ({"_id": "user-1"}, False),
        ({"_id": "user-1", "isActive": True}, False),
        ({"_id": "user-1", "isActive": False}, True),
    ],
)
def test_toggle_active_flips_status(payload: dict, expected: bool) -> None:
    repo = FakeUserRepository()
    service = UsersService(repo)

    updated = asyncio.run(service.toggle_active(User.model_validate(payload)))

    assert repo.set_active_calls == [("user-1", expected)]
    assert updated.is_active is expected


def test_update_user_without_fields_sends_nothing() -> None:
    repo = FakeUserRepository()

    with pytest.raises(ClientValidationError, match="No fields to update"):
        asyncio.run(UsersService(repo).update_user("user-1", UserUpdateInput()))

    assert repo.update_calls == []


def test_update_user_rejects_invalid_email() -> None:
    repo = FakeUserRepository()

    with pytest.raises(ClientValidationError, match="valid email"):
        asyncio.run(UsersService(repo).update_user("user-1", UserUpdateInput(email="nope")))


def test_update_user_sends_only_changed_fields() -> None:
    repo = FakeUserRepository()

    asyncio.run(UsersService(repo).update_user("user-1", UserUpdateInput(role="cashier")))

    assert repo.update_calls == [("user-1", {"role": "cashier"})]


def _valid_game_input() -> GameInput:
    data = new_game_input()
    data.name = "Galaxy Quest"
    data.description = "Space shooter for the whole family"
    data.image = "/uploads/galaxy.png"
    return data


def test_new_game_input_passes_validation_once_filled() -> None:
    data = _valid_game_input()

    validate_game_input(data)

    assert [loc.name for loc in data.locations or []] == ["Cedar Park", "Liberty Hill"]
    assert len(data.token_packages or []) == 4


@pytest.mark.parametrize(
    ("changes", "message"),
    [
        ({"name": "G"}, "at least 2 characters"),
        ({"description": "short"}, "at least 10 characters"),
        ({"image": ""}, "Game image is required"),
        ({"category": "Horror"}, "Invalid category"),
        ({"status": "archived"}, "Invalid status"),
        ({"locations": []}, "At least one location is required"),
        ({"locations": [GameLocation(name=" ")]}, "Location name is required"),
        ({"token_packages": []}, "At least one token package is required"),
        ({"token_packages": [TokenPackage(tokens=0, price=1)]}, "Tokens must be at least 1"),
    ],
)
def test_validate_game_input_rejects(changes: dict, message: str) -> None:
    data = _valid_game_input().model_copy(update=changes)

    with pytest.raises(ClientValidationError, match=message):
        validate_game_input(data)


def test_partial_update_only_checks_given_fields() -> None:
    validate_game_input(GameInput(featured=True), partial=True)

    with pytest.raises(ClientValidationError, match="Invalid status"):
        validate_game_input(GameInput(status="archived"), partial=True)


class FakeGameRepository:
    def __init__(self) -> None:
        self.list_calls: list[dict] = []

    async def list(self, params: dict) -> Page[Game]:
        self.list_calls.append(params)
        return Page[Game](
            items=[Game.model_validate({"_id": "game-1", "name": "Galaxy Quest"})],
            pagination=PaginationMeta(page=1, limit=5, total=8, pages=2),
        )


def test_featured_games_query() -> None:
    repo = FakeGameRepository()

    games = asyncio.run(GamesService(repo).list_featured())

    assert repo.list_calls == [{"featured": "true", "status": "active", "limit": 6}]
    assert [game.id for game in games] == ["game-1"]


def test_get_game_requires_id() -> None:
    with pytest.raises(ClientValidationError, match="Game ID is required"):
        asyncio.run(GamesService(FakeGameRepository()).get_game(""))


class FakeEventRepository:
    def __init__(self) -> None:
        self.update_calls: list[tuple[str, dict]] = []
        self.create_calls: list[dict] = []

    async def update(self, event_id: str, data: EventInput) -> Event:
        self.update_calls.append((event_id, data.to_wire()))
        return Event.model_validate({"_id": event_id, "title": "Launch Night", **data.to_wire()})

    async def create(self, data: EventInput) -> Event:
        self.create_calls.append(data.to_wire())
        return Event.model_validate({"_id": "event-1", **data.to_wire()})


class FakeWinnerRepository:
    def __init__(self) -> None:
        self.update_calls: list[tuple[str, dict]] = []
        self.create_calls: list[dict] = []

    async def update(self, winner_id: str, data: WinnerInput) -> Winner:
        self.update_calls.append((winner_id, data.to_wire()))
        return Winner.model_validate({"_id": winner_id, "name": "Jane", **data.to_wire()})

    async def create(self, data: WinnerInput) -> Winner:
        self.create_calls.append(data.to_wire())
        return Winner.model_validate({"_id": "winner-1", **data.to_wire()})


def test_event_toggle_sends_inverted_visibility() -> None:
    repo = FakeEventRepository()
    event = Event.model_validate({"_id": "event-1", "title": "Launch Night", "showEvent": False})

    updated = asyncio.run(EventsService(repo).toggle_visibility(event))

    assert repo.update_calls == [("event-1", {"showEvent": True})]
    assert updated.show_event is True


def test_event_create_requires_title_date_and_description() -> None:
    repo = FakeEventRepository()

    with pytest.raises(ClientValidationError, match="Missing required fields: date, description"):
        asyncio.run(EventsService(repo).create_event(EventInput(title="Launch Night")))

    assert repo.create_calls == []


def test_winner_toggle_and_validation() -> None:
    repo = FakeWinnerRepository()
    service = WinnersService(repo)
    winner = Winner.model_validate({"_id": "winner-1", "name": "Jane", "showWinner": True})

    asyncio.run(service.toggle_visibility(winner))
    assert repo.update_calls == [("winner-1", {"showWinner": False})]

    with pytest.raises(ClientValidationError, match="Amount must be positive"):
        asyncio.run(
            service.create_winner(
                WinnerInput(
                    name="Jane",
                    email="jane@example.com",
                    phone="555-0100",
                    amount=-1,
                    date=datetime(2025, 1, 1, tzinfo=timezone.utc),
                )
            )
        )
    assert repo.create_calls == []


class FakePaymentRepository:
    def __init__(self) -> None:
        self.list_all_calls: list[dict] = []

    async def list_all(self, params: dict) -> Page[Payment]:
        self.list_all_calls.append(params)
        return Page[Payment](
            items=[
                Payment.model_validate(
                    {
                        "_id": "payment-1",
                        "game": "game-1",
                        "tokenPackage": {"tokens": 10, "price": 10},
                        "status": "succeeded",
                    }
                )
            ]
        )

    async def stats(self) -> PaymentStats:
        return PaymentStats(total_payments=3, total_revenue=74.0)


def test_overview_loads_recent_items_and_stats() -> None:
    game_repo = FakeGameRepository()
    payment_repo = FakePaymentRepository()

    overview = asyncio.run(
        OverviewService(game_repo, payment_repo, FakeUserRepository()).load()
    )

    assert game_repo.list_calls == [{"limit": 5, "page": 1}]
    assert payment_repo.list_all_calls == [
        {"limit": 5, "page": 1, "sortBy": "createdAt", "sortOrder": "desc"}
    ]
    assert overview.total_games == 8
    assert overview.user_stats.total_users == 12
    assert overview.payment_stats.total_revenue == 74.0
    assert [p.id for p in overview.recent_payments] == ["payment-1"]
