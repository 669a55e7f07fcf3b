from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated

from pydantic.functional_serializers import PlainSerializer
from pydantic.functional_validators import AfterValidator


def ensure_utc(value: datetime) -> datetime:
    """naive datetime 은 UTC 로 간주하고, aware datetime 은 UTC 로 변환한다.

    백엔드는 "2025-01-01T10:00:00.000Z" 형태의 ISO8601 문자열을 내려주므로
    pydantic 이 파싱한 값을 항상 UTC aware 로 맞춰 비교/정렬이 섞이지 않게 한다.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def serialize_datetime_to_utc_iso8601(value: datetime) -> str:
    """모든 datetime을 UTC 기준 ISO8601(+타임존) 문자열로 직렬화한다."""
    return ensure_utc(value).isoformat()


UtcDateTime = Annotated[
    datetime,
    AfterValidator(ensure_utc),
    PlainSerializer(
        serialize_datetime_to_utc_iso8601,
        return_type=str,
        when_used="json",
    ),
]
