"""목록 응답 공통 스키마."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, Field


T = TypeVar("T")


class PaginationMeta(BaseModel):
    """서버가 내려주는 페이지네이션 메타데이터 ({page, limit, total, pages})."""

    page: int = 1
    limit: int = 10
    total: int = 0
    pages: int = 0


class Page(BaseModel, Generic[T]):
    """한 페이지 분량의 아이템과 서버 기준 페이지네이션 정보."""

    items: list[T] = Field(default_factory=list)
    pagination: PaginationMeta = Field(default_factory=PaginationMeta)
