from __future__ import annotations

from enum import StrEnum

from pydantic import AliasChoices, Field

from gameroom_common.models.utils import WireModel
from gameroom_common.types.datetime import UtcDateTime


class UserRole(StrEnum):
    USER = "user"
    ADMIN = "admin"
    CASHIER = "cashier"


class UserRef(WireModel):
    """토큰 잔액 등에 포함되어 내려오는 유저 요약 정보."""

    id: str = Field(alias="_id")
    firstname: str = ""
    lastname: str = ""
    email: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.firstname} {self.lastname}".strip()


class User(WireModel):
    """유저 도메인 모델.

    - 백엔드는 엔드포인트에 따라 `_id` 또는 `id` 로 식별자를 내려주므로 둘 다 받는다.
    - 캐셔 계정은 담당 매장(location)을 가진다.
    """

    id: str = Field(validation_alias=AliasChoices("_id", "id"), serialization_alias="_id")
    username: str = ""
    firstname: str = ""
    lastname: str = ""
    email: str = ""
    role: str = UserRole.USER
    is_active: bool | None = Field(default=None, alias="isActive")
    location: str | None = None
    created_at: UtcDateTime | None = Field(default=None, alias="createdAt")
    last_login: UtcDateTime | None = Field(default=None, alias="lastLogin")

    @property
    def full_name(self) -> str:
        name = f"{self.firstname} {self.lastname}".strip()
        return name or self.username

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_blocked(self) -> bool:
        # isActive 가 내려오지 않은 계정은 활성 상태로 취급한다.
        return self.is_active is False


class UserUpdateInput(WireModel):
    """관리자 유저 수정 요청 바디. 값이 있는 필드만 전송한다."""

    username: str | None = None
    firstname: str | None = None
    lastname: str | None = None
    email: str | None = None
    role: str | None = None
    is_active: bool | None = Field(default=None, alias="isActive")


class Credentials(WireModel):
    email: str
    password: str


class SignupInput(WireModel):
    username: str
    email: str
    password: str
    firstname: str | None = None
    lastname: str | None = None


class UserStats(WireModel):
    """관리자 대시보드용 유저 통계."""

    total_users: int = Field(default=0, alias="totalUsers")
    active_users: int = Field(default=0, alias="activeUsers")
    admin_users: int = Field(default=0, alias="adminUsers")
    new_users: int = Field(default=0, alias="newUsers")
