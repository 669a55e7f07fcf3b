from __future__ import annotations

from gameroom_common.models.game import Game, GameInput
from gameroom_common.schemas.pagination import Page

from .api_client import ApiClient, parse_model, parse_page
from .interfaces import GameRepositoryInterface, QueryParams


class GameRepository(GameRepositoryInterface):
    """/games 엔드포인트에 대한 HTTP 접근 레이어."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def list(self, params: QueryParams) -> Page[Game]:
        body = await self._client.get(
            "/games",
            params=params,
            error_message="Failed to fetch games",
            authenticated=False,
        )
        return parse_page(body, "games", Game)

    async def get(self, game_id: str) -> Game:
        body = await self._client.get(
            f"/games/{game_id}",
            error_message="Failed to fetch game",
            authenticated=False,
        )
        return parse_model(body, "game", Game)

    async def create(self, data: GameInput) -> Game:
        body = await self._client.post(
            "/games",
            json=data.to_wire(),
            error_message="Failed to create game",
        )
        return parse_model(body, "game", Game)

    async def update(self, game_id: str, data: GameInput) -> Game:
        body = await self._client.put(
            f"/games/{game_id}",
            json=data.to_wire(),
            error_message="Failed to update game",
        )
        return parse_model(body, "game", Game)

    async def delete(self, game_id: str) -> None:
        await self._client.delete(
            f"/games/{game_id}",
            error_message="Failed to delete game",
        )
