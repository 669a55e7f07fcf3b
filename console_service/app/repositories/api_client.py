"""백엔드 REST API 공통 호출 레이어.

모든 레포지토리는 이 클라이언트를 통해서만 HTTP 를 호출한다.
- 인증 헤더는 주입받은 Session 에서 매 요청마다 읽는다.
- 2xx 가 아니면 응답 바디의 message 로 ApiResponseError 를 던진다.
- 네트워크 오류는 ApiTransportError 로 감싼다.
- 2xx 라도 모델로 파싱할 수 없는 응답은 ApiResponseError 로 바꾼다.
"""

from __future__ import annotations

import logging
import math
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from gameroom_common.http.trace import OutboundTrace
from gameroom_common.schemas.pagination import Page, PaginationMeta

from ..config import ApiConfig
from ..exceptions import ApiResponseError, ApiTransportError
from ..session import Session


logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

UNEXPECTED_RESPONSE_MESSAGE = "Unexpected response from server"


class ApiClient:
    def __init__(
        self,
        config: ApiConfig,
        session: Session,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        trace: OutboundTrace | None = None,
    ) -> None:
        self._session = session
        self._trace = trace or OutboundTrace(logging.getLogger("gameroom.http"))
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            transport=transport,
            event_hooks=self._trace.event_hooks(),
        )

    @property
    def session(self) -> Session:
        return self._session

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        error_message: str = "Request failed",
        authenticated: bool = True,
    ) -> Any:
        headers = {"Content-Type": "application/json"}
        if authenticated and self._session.token:
            headers["Authorization"] = f"Bearer {self._session.token}"

        try:
            response = await self._client.request(
                method,
                path,
                params=params,
                json=json,
                headers=headers,
            )
        except httpx.RequestError as exc:  # noqa: BLE001
            try:
                failed_request: httpx.Request | None = exc.request
            except RuntimeError:
                failed_request = None
            self._trace.log_failure(failed_request, exc)
            raise ApiTransportError(f"{error_message}: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        if not response.is_success:
            message = body.get("message") if isinstance(body, dict) else None
            raise ApiResponseError(response.status_code, message or error_message)

        return body

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def patch(self, path: str, **kwargs: Any) -> Any:
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", path, **kwargs)


def unwrap_data(body: Any) -> Any:
    """`{success, data: {...}}` 봉투를 벗긴다. 봉투가 없으면 그대로 반환한다."""
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


def _validate(model: type[M], data: Any, error_message: str) -> M:
    # 2xx 라도 모양이 다른 응답은 요청 실패로 본다.
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        logger.warning("unexpected %s payload: %s", model.__name__, exc)
        raise ApiResponseError(200, error_message) from exc


def parse_model(
    body: Any,
    key: str,
    model: type[M],
    *,
    error_message: str = UNEXPECTED_RESPONSE_MESSAGE,
) -> M:
    """`data.<key>` 또는 data 자체를 모델로 파싱한다."""
    data = unwrap_data(body)
    if isinstance(data, dict) and key in data:
        data = data[key]
    return _validate(model, data, error_message)


def paginate_items(items: list[M], *, page: int = 1, limit: int | None = None) -> Page[M]:
    """메모리에 있는 전체 목록을 Page 로 만든다. limit 가 없으면 전부 한 페이지다."""
    total = len(items)
    if not limit or limit < 1:
        return Page(
            items=items,
            pagination=PaginationMeta(
                page=1,
                limit=max(total, 1),
                total=total,
                pages=1 if total else 0,
            ),
        )

    pages = math.ceil(total / limit)
    page = min(max(page, 1), max(pages, 1))
    start = (page - 1) * limit
    return Page(
        items=items[start : start + limit],
        pagination=PaginationMeta(page=page, limit=limit, total=total, pages=pages),
    )


def parse_page(
    body: Any,
    key: str,
    model: type[M],
    *,
    error_message: str = UNEXPECTED_RESPONSE_MESSAGE,
) -> Page[M]:
    """목록 응답을 Page 로 변환한다.

    아이템 키는 엔티티 복수형(games, users ...) 또는 items 를 모두 허용한다.
    배열만 내려오는 엔드포인트(events, winners)는 한 페이지짜리 결과로 취급한다.
    """
    data = unwrap_data(body)

    if isinstance(data, list):
        raw_items: Any = data
        raw_pagination: Any = {}
    elif isinstance(data, dict):
        raw_items = data.get(key)
        if raw_items is None:
            raw_items = data.get("items") or []
        raw_pagination = data.get("pagination") or {}
    else:
        raw_items = []
        raw_pagination = {}

    if not isinstance(raw_items, list):
        raise ApiResponseError(200, error_message)

    items = [_validate(model, item, error_message) for item in raw_items]

    if not raw_pagination:
        return paginate_items(items)

    pagination = _validate(PaginationMeta, raw_pagination, error_message)
    return Page[model](items=items, pagination=pagination)  # type: ignore[valid-type]


def parse_list(body: Any, key: str, model: type[M]) -> list[M]:
    return parse_page(body, key, model).items
