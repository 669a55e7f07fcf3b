"""이벤트/당첨자 레포지토리.

두 리소스 모두 봉투 없이 배열/객체를 그대로 내려주고, 공개 목록은 인증이 필요 없다.
"""

from __future__ import annotations

from gameroom_common.models.promotion import Event, EventInput, Winner, WinnerInput

from .api_client import ApiClient, parse_list, parse_model
from .interfaces import EventRepositoryInterface, WinnerRepositoryInterface


class EventRepository(EventRepositoryInterface):
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def list_all(self) -> list[Event]:
        body = await self._client.get("/events", error_message="Failed to fetch events")
        return parse_list(body, "events", Event)

    async def list_public(self) -> list[Event]:
        body = await self._client.get(
            "/events/public",
            error_message="Failed to fetch events",
            authenticated=False,
        )
        return parse_list(body, "events", Event)

    async def get(self, event_id: str) -> Event:
        body = await self._client.get(
            f"/events/{event_id}", error_message="Failed to fetch event"
        )
        return parse_model(body, "event", Event)

    async def create(self, data: EventInput) -> Event:
        body = await self._client.post(
            "/events", json=data.to_wire(), error_message="Failed to create event"
        )
        return parse_model(body, "event", Event)

    async def update(self, event_id: str, data: EventInput) -> Event:
        body = await self._client.put(
            f"/events/{event_id}",
            json=data.to_wire(),
            error_message="Failed to update event",
        )
        return parse_model(body, "event", Event)

    async def delete(self, event_id: str) -> None:
        await self._client.delete(
            f"/events/{event_id}", error_message="Failed to delete event"
        )


class WinnerRepository(WinnerRepositoryInterface):
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def list_all(self) -> list[Winner]:
        body = await self._client.get("/winners", error_message="Failed to fetch winners")
        return parse_list(body, "winners", Winner)

    async def list_public(self) -> list[Winner]:
        body = await self._client.get(
            "/winners/public",
            error_message="Failed to fetch winners",
            authenticated=False,
        )
        return parse_list(body, "winners", Winner)

    async def get(self, winner_id: str) -> Winner:
        body = await self._client.get(
            f"/winners/{winner_id}", error_message="Failed to fetch winner"
        )
        return parse_model(body, "winner", Winner)

    async def create(self, data: WinnerInput) -> Winner:
        body = await self._client.post(
            "/winners", json=data.to_wire(), error_message="Failed to create winner"
        )
        return parse_model(body, "winner", Winner)

    async def update(self, winner_id: str, data: WinnerInput) -> Winner:
        body = await self._client.put(
            f"/winners/{winner_id}",
            json=data.to_wire(),
            error_message="Failed to update winner",
        )
        return parse_model(body, "winner", Winner)

    async def delete(self, winner_id: str) -> None:
        await self._client.delete(
            f"/winners/{winner_id}", error_message="Failed to delete winner"
        )
