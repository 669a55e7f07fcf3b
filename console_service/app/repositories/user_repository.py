from __future__ import annotations

from typing import Any

from gameroom_common.models.user import (
    Credentials,
    SignupInput,
    User,
    UserStats,
    UserUpdateInput,
)
from gameroom_common.schemas.pagination import Page

from ..exceptions import ApiResponseError
from .api_client import ApiClient, parse_model, parse_page, unwrap_data
from .interfaces import QueryParams, UserRepositoryInterface


class UserRepository(UserRepositoryInterface):
    """/auth 하위 유저/인증 엔드포인트에 대한 HTTP 접근 레이어."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    @staticmethod
    def _parse_auth(body: Any, error_message: str) -> tuple[User, str]:
        data = unwrap_data(body)
        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            # 200 이지만 토큰이 없는 응답은 실패로 본다.
            raise ApiResponseError(200, error_message)
        return parse_model(data, "user", User), token

    async def login(self, credentials: Credentials) -> tuple[User, str]:
        body = await self._client.post(
            "/auth/login",
            json=credentials.to_wire(),
            error_message="Login failed",
            authenticated=False,
        )
        return self._parse_auth(body, "Login failed")

    async def signup(self, data: SignupInput) -> tuple[User, str]:
        body = await self._client.post(
            "/auth/signup",
            json=data.to_wire(),
            error_message="Signup failed",
            authenticated=False,
        )
        return self._parse_auth(body, "Signup failed")

    async def me(self) -> User:
        body = await self._client.get(
            "/auth/me",
            error_message="Failed to get user data",
        )
        return parse_model(body, "user", User)

    async def list(self, params: QueryParams) -> Page[User]:
        body = await self._client.get(
            "/auth/users",
            params=params,
            error_message="Failed to fetch users",
        )
        return parse_page(body, "users", User)

    async def stats(self) -> UserStats:
        body = await self._client.get(
            "/auth/stats",
            error_message="Failed to fetch user stats",
        )
        return parse_model(body, "stats", UserStats)

    async def update(self, user_id: str, data: UserUpdateInput) -> User:
        body = await self._client.put(
            f"/auth/{user_id}",
            json=data.to_wire(),
            error_message="Failed to update user",
        )
        return parse_model(body, "user", User)

    async def delete(self, user_id: str) -> None:
        await self._client.delete(
            f"/auth/{user_id}",
            error_message="Failed to delete user",
        )

    async def set_active(self, user_id: str, is_active: bool) -> User:
        body = await self._client.patch(
            f"/auth/{user_id}/block",
            json={"isActive": is_active},
            error_message="Failed to update user status",
        )
        return parse_model(body, "user", User)
