from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict


class WireModel(BaseModel):
    """백엔드 JSON(camelCase, `_id`)과 파이썬 필드명을 모두 받아들이는 공통 베이스 모델."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_wire(self, *, exclude_none: bool = True) -> dict[str, Any]:
        """요청 바디용 dict 로 변환한다 (alias 사용, JSON 직렬화 규칙 적용)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=exclude_none)


def expand_ref(data: Any) -> Any:
    """참조 필드가 id 문자열로만 내려온 경우 `{"_id": ...}` 형태로 펼친다.

    같은 엔드포인트라도 populate 여부에 따라 `game: "abc"` 또는
    `game: {"_id": "abc", "name": ...}` 로 내려오기 때문에 모델 쪽에서 흡수한다.
    """
    if isinstance(data, str):
        return {"_id": data}
    return data


def expand_ref_fields(data: Any, *, fields: list[str]) -> Any:
    if not isinstance(data, Mapping):
        return data

    changed = False
    result: dict[str, Any] = dict(data)
    for field in fields:
        value = result.get(field)
        if not isinstance(value, str):
            continue
        result[field] = expand_ref(value)
        changed = True

    if not changed:
        return data

    return result
