from __future__ import annotations

import logging

from gameroom_common.models.user import Credentials, SignupInput, User, UserStats, UserUpdateInput
from gameroom_common.schemas.pagination import Page

from ..exceptions import ClientValidationError
from ..repositories.interfaces import QueryParams, UserRepositoryInterface
from ..session import Session


logger = logging.getLogger(__name__)


class AuthService:
    """로그인/회원가입/로그아웃. 성공하면 세션에 토큰을 저장한다."""

    def __init__(self, session: Session, user_repo: UserRepositoryInterface) -> None:
        self._session = session
        self._user_repo = user_repo

    async def login(self, email: str, password: str) -> User:
        if not email or not password:
            raise ClientValidationError("Email and password are required")
        user, token = await self._user_repo.login(Credentials(email=email, password=password))
        self._session.sign_in(token)
        return user

    async def signup(self, data: SignupInput) -> User:
        if not data.username or not data.email or not data.password:
            raise ClientValidationError("Username, email and password are required")
        user, token = await self._user_repo.signup(data)
        self._session.sign_in(token)
        return user

    def logout(self) -> None:
        self._session.sign_out()

    async def current_user(self) -> User | None:
        """로그인하지 않았으면 None. 토큰이 있으면 /auth/me 로 확인한다."""
        if not self._session.is_authenticated:
            return None
        return await self._user_repo.me()


class UsersService:
    """관리자 유저 관리 비즈니스 로직.

    - Repository(UserRepositoryInterface)에만 의존하고, HTTP 세부 구현은 알지 않는다.
    """

    def __init__(self, user_repo: UserRepositoryInterface) -> None:
        self._user_repo = user_repo

    async def list_users(self, params: QueryParams) -> Page[User]:
        return await self._user_repo.list(params)

    async def get_stats(self) -> UserStats:
        return await self._user_repo.stats()

    async def update_user(self, user_id: str, data: UserUpdateInput) -> User:
        """값이 채워진 필드만 전송한다. 바꿀 필드가 없으면 요청하지 않는다."""
        if not data.to_wire():
            raise ClientValidationError("No fields to update")
        if data.email is not None and "@" not in data.email:
            raise ClientValidationError("Please enter a valid email address")
        return await self._user_repo.update(user_id, data)

    async def toggle_active(self, user: User) -> User:
        """차단 ↔ 활성 전환. isActive 가 없는 계정은 활성 상태로 보고 차단한다."""
        new_status = user.is_blocked
        updated = await self._user_repo.set_active(user.id, new_status)
        logger.info(
            "user %s %s", user.id, "activated" if new_status else "blocked"
        )
        return updated

    async def delete_user(self, user_id: str) -> None:
        await self._user_repo.delete(user_id)
