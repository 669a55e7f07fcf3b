from __future__ import annotations

from gameroom_common.models.game import (
    DEFAULT_LOCATIONS,
    DEFAULT_TOKEN_PACKAGES,
    Game,
    GameCategory,
    GameInput,
    GameStatus,
)
from gameroom_common.schemas.pagination import Page

from ..exceptions import ClientValidationError
from ..repositories.interfaces import GameRepositoryInterface, QueryParams


def validate_game_input(data: GameInput, *, partial: bool = False) -> None:
    """게임 폼 검증. partial 이면 채워진 필드만 검사한다 (수정)."""

    def required(value: object) -> bool:
        return value is not None or not partial

    if required(data.name):
        name = (data.name or "").strip()
        if len(name) < 2:
            raise ClientValidationError("Game name must be at least 2 characters")
        if len(name) > 100:
            raise ClientValidationError("Game name cannot exceed 100 characters")

    if required(data.description):
        description = (data.description or "").strip()
        if len(description) < 10:
            raise ClientValidationError("Description must be at least 10 characters")
        if len(description) > 500:
            raise ClientValidationError("Description cannot exceed 500 characters")

    if required(data.image) and not data.image:
        raise ClientValidationError("Game image is required")

    if required(data.category) and data.category not in set(GameCategory):
        raise ClientValidationError(f"Invalid category: {data.category}")

    if required(data.status) and data.status not in set(GameStatus):
        raise ClientValidationError(f"Invalid status: {data.status}")

    if required(data.locations):
        if not data.locations:
            raise ClientValidationError("At least one location is required")
        if any(not loc.name.strip() for loc in data.locations):
            raise ClientValidationError("Location name is required")

    if required(data.token_packages):
        if not data.token_packages:
            raise ClientValidationError("At least one token package is required")
        if any(package.tokens < 1 for package in data.token_packages):
            raise ClientValidationError("Tokens must be at least 1")


def new_game_input() -> GameInput:
    """새 게임 폼의 기본값."""
    return GameInput(
        name="",
        description="",
        image="",
        category=GameCategory.OTHER,
        status=GameStatus.ACTIVE,
        featured=False,
        locations=[loc.model_copy() for loc in DEFAULT_LOCATIONS],
        token_packages=[package.model_copy() for package in DEFAULT_TOKEN_PACKAGES],
    )


class GamesService:
    """게임 카탈로그 조회 및 관리자 게임 관리."""

    def __init__(self, game_repo: GameRepositoryInterface) -> None:
        self._game_repo = game_repo

    async def list_games(self, params: QueryParams) -> Page[Game]:
        return await self._game_repo.list(params)

    async def list_featured(self, limit: int = 6) -> list[Game]:
        page = await self._game_repo.list(
            {"featured": "true", "status": GameStatus.ACTIVE.value, "limit": limit}
        )
        return list(page.items)

    async def get_game(self, game_id: str | None) -> Game:
        if not game_id:
            raise ClientValidationError("Game ID is required")
        return await self._game_repo.get(game_id)

    async def create_game(self, data: GameInput) -> Game:
        validate_game_input(data)
        return await self._game_repo.create(data)

    async def update_game(self, game_id: str, data: GameInput) -> Game:
        validate_game_input(data, partial=True)
        return await self._game_repo.update(game_id, data)

    async def delete_game(self, game_id: str) -> None:
        await self._game_repo.delete(game_id)
