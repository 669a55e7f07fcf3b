from __future__ import annotations

from enum import StrEnum

from pydantic import Field

from gameroom_common.models.utils import WireModel
from gameroom_common.types.datetime import UtcDateTime


class GameCategory(StrEnum):
    RPG = "RPG"
    ACTION = "Action"
    SCI_FI = "Sci-Fi"
    ADVENTURE = "Adventure"
    STRATEGY = "Strategy"
    PUZZLE = "Puzzle"
    RACING = "Racing"
    SPORTS = "Sports"
    OTHER = "Other"


class GameStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"


class GameLocation(WireModel):
    """게임을 플레이할 수 있는 매장 위치."""

    name: str
    available: bool = True


class TokenPackage(WireModel):
    """구매 가능한 토큰 패키지 (토큰 수량, 가격 USD)."""

    tokens: int = Field(ge=0)
    price: float = Field(ge=0)
    name: str | None = None


class GameRef(WireModel):
    """다른 리소스에 포함되어 내려오는 게임 요약 정보."""

    id: str = Field(alias="_id")
    name: str = ""
    image: str = ""


class Game(WireModel):
    """게임 도메인 모델."""

    id: str = Field(alias="_id")
    name: str
    description: str = ""
    image: str = ""
    category: str = GameCategory.OTHER
    status: str = GameStatus.ACTIVE
    locations: list[GameLocation] = Field(default_factory=list)
    token_packages: list[TokenPackage] = Field(
        default_factory=list, alias="tokenPackages"
    )
    featured: bool = False
    total_sales: int = Field(default=0, alias="totalSales")
    created_at: UtcDateTime | None = Field(default=None, alias="createdAt")
    updated_at: UtcDateTime | None = Field(default=None, alias="updatedAt")

    def is_available_at(self, location: str) -> bool:
        return any(
            loc.name == location and loc.available for loc in self.locations
        )


class GameInput(WireModel):
    """게임 생성/수정 요청 바디. 수정 시에는 바뀐 필드만 채운다."""

    name: str | None = None
    description: str | None = None
    image: str | None = None
    category: str | None = None
    status: str | None = None
    locations: list[GameLocation] | None = None
    token_packages: list[TokenPackage] | None = Field(
        default=None, alias="tokenPackages"
    )
    featured: bool | None = None


DEFAULT_TOKEN_PACKAGES: tuple[TokenPackage, ...] = (
    TokenPackage(tokens=10, price=10),
    TokenPackage(tokens=20, price=19),
    TokenPackage(tokens=50, price=45),
    TokenPackage(tokens=100, price=90),
)

DEFAULT_LOCATIONS: tuple[GameLocation, ...] = (
    GameLocation(name="Cedar Park", available=True),
    GameLocation(name="Liberty Hill", available=True),
)
