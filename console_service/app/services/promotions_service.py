"""이벤트/당첨자 관리.

두 리소스는 필드만 다르고 흐름(목록, 공개 목록, 생성/수정/삭제, 노출 토글)이 같다.
"""

from __future__ import annotations

from gameroom_common.models.promotion import Event, EventInput, Winner, WinnerInput

from ..exceptions import ClientValidationError
from ..repositories.interfaces import EventRepositoryInterface, WinnerRepositoryInterface


def _require(fields: dict[str, object]) -> None:
    missing = [name for name, value in fields.items() if value is None or value == ""]
    if missing:
        raise ClientValidationError(f"Missing required fields: {', '.join(missing)}")


def validate_event_input(data: EventInput) -> None:
    _require({"title": data.title, "date": data.date, "description": data.description})


def validate_winner_input(data: WinnerInput) -> None:
    _require(
        {
            "name": data.name,
            "email": data.email,
            "phone": data.phone,
            "amount": data.amount,
            "date": data.date,
        }
    )
    if data.amount is not None and data.amount < 0:
        raise ClientValidationError("Amount must be positive")


class EventsService:
    def __init__(self, event_repo: EventRepositoryInterface) -> None:
        self._event_repo = event_repo

    async def list_events(self) -> list[Event]:
        return await self._event_repo.list_all()

    async def list_public_events(self) -> list[Event]:
        return await self._event_repo.list_public()

    async def get_event(self, event_id: str) -> Event:
        return await self._event_repo.get(event_id)

    async def create_event(self, data: EventInput) -> Event:
        validate_event_input(data)
        return await self._event_repo.create(data)

    async def update_event(self, event_id: str, data: EventInput) -> Event:
        return await self._event_repo.update(event_id, data)

    async def delete_event(self, event_id: str) -> None:
        await self._event_repo.delete(event_id)

    async def toggle_visibility(self, event: Event) -> Event:
        return await self._event_repo.update(
            event.id, EventInput(show_event=not event.show_event)
        )


class WinnersService:
    def __init__(self, winner_repo: WinnerRepositoryInterface) -> None:
        self._winner_repo = winner_repo

    async def list_winners(self) -> list[Winner]:
        return await self._winner_repo.list_all()

    async def list_public_winners(self) -> list[Winner]:
        return await self._winner_repo.list_public()

    async def get_winner(self, winner_id: str) -> Winner:
        return await self._winner_repo.get(winner_id)

    async def create_winner(self, data: WinnerInput) -> Winner:
        validate_winner_input(data)
        return await self._winner_repo.create(data)

    async def update_winner(self, winner_id: str, data: WinnerInput) -> Winner:
        return await self._winner_repo.update(winner_id, data)

    async def delete_winner(self, winner_id: str) -> None:
        await self._winner_repo.delete(winner_id)

    async def toggle_visibility(self, winner: Winner) -> Winner:
        return await self._winner_repo.update(
            winner.id, WinnerInput(show_winner=not winner.show_winner)
        )
