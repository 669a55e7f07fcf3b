"""이벤트/당첨자 등 프로모션 페이지에 노출되는 리소스 모델."""

from __future__ import annotations

from typing import Any

from pydantic import Field, model_validator

from gameroom_common.models.game import GameRef
from gameroom_common.models.utils import WireModel, expand_ref_fields
from gameroom_common.types.datetime import UtcDateTime


class Event(WireModel):
    id: str = Field(alias="_id")
    title: str
    description: str = ""
    date: UtcDateTime | None = None
    location: str = ""
    image: str = ""
    show_event: bool = Field(default=False, alias="showEvent")
    created_at: UtcDateTime | None = Field(default=None, alias="createdAt")
    updated_at: UtcDateTime | None = Field(default=None, alias="updatedAt")


class EventInput(WireModel):
    title: str | None = None
    description: str | None = None
    date: UtcDateTime | None = None
    location: str | None = None
    image: str | None = None
    show_event: bool | None = Field(default=None, alias="showEvent")


class Winner(WireModel):
    id: str = Field(alias="_id")
    name: str
    email: str = ""
    phone: str = ""
    location: str = ""
    game: GameRef | None = None
    amount: float = 0.0
    date: UtcDateTime | None = None
    show_winner: bool = Field(default=False, alias="showWinner")
    created_at: UtcDateTime | None = Field(default=None, alias="createdAt")
    updated_at: UtcDateTime | None = Field(default=None, alias="updatedAt")

    @model_validator(mode="before")
    @classmethod
    def _expand_refs(cls, data: Any) -> Any:
        return expand_ref_fields(data, fields=["game"])


class WinnerInput(WireModel):
    """당첨자 생성/수정 요청 바디. game 은 게임 id 문자열로 보낸다."""

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    location: str | None = None
    game: str | None = None
    amount: float | None = None
    date: UtcDateTime | None = None
    show_winner: bool | None = Field(default=None, alias="showWinner")
