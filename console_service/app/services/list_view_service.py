"""관리자 목록 화면(검색/필터/정렬/페이지네이션) 공통 엔진.

엔티티마다 ListViewConfig 하나만 선언하면 같은 ListView 로 동작한다.

두 가지 모드를 지원한다.
- client: 서버에서 받은 한 페이지를 메모리에서 필터링/정렬한다. 페이지 수는 서버가 알려준
  (필터 전) total 기준이며, 필터 후 건수는 filtered_count 로 따로 노출한다.
- server: 필터/정렬/페이지가 바뀔 때마다 쿼리 파라미터로 다시 조회한다. 검색어만 debounce 한다.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import math
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import StrEnum
from typing import Any, Generic, TypeVar

from gameroom_common.schemas.pagination import Page

from ..cancellation import ViewScope
from ..config import DEFAULT_SEARCH_DEBOUNCE_MS, ListViewSettings
from ..exceptions import ConsoleError


logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_VISIBLE_PAGES = 5
ALL = "all"

SearchAccessor = Callable[[T], Any]
FilterPredicate = Callable[[T, str], bool]
SortKey = Callable[[T], Any]
PageFetcher = Callable[[dict[str, Any]], Awaitable[Page[T]]]


class ListMode(StrEnum):
    CLIENT = "client"
    SERVER = "server"


class SortOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"


@dataclass(slots=True)
class FilterState:
    search: str = ""
    filters: dict[str, str] = field(default_factory=dict)
    sort_by: str | None = None
    sort_order: SortOrder = SortOrder.ASC


@dataclass(slots=True)
class PaginationState:
    page: int = 1
    limit: int = 10
    total: int = 0

    @property
    def total_pages(self) -> int:
        if self.limit <= 0 or self.total <= 0:
            return 0
        return math.ceil(self.total / self.limit)

    def clamp(self) -> None:
        self.page = min(max(1, self.page), max(1, self.total_pages))


@dataclass(slots=True)
class PageWindow:
    """페이지 버튼 묶음. pages 는 가운데 창에 보이는 번호들이다."""

    pages: list[int]
    current: int
    total_pages: int
    show_first: bool = False
    leading_ellipsis: bool = False
    trailing_ellipsis: bool = False
    show_last: bool = False
    has_previous: bool = False
    has_next: bool = False


@dataclass(slots=True)
class ListViewConfig(Generic[T]):
    """엔티티 하나에 대한 목록 화면 선언.

    - search_fields: 검색어와 부분 일치(대소문자 무시)를 확인할 문자열 접근자들
    - filters: 필터 이름 → (item, 선택값) 판정 함수. 값이 "all" 이거나 비어 있으면 적용하지 않는다.
    - sort_fields: 정렬 기준 이름 → 정렬 키 추출 함수
    - param_names: 서버 모드에서 필터 이름과 쿼리 파라미터 이름이 다를 때의 매핑
    """

    name: str
    search_fields: Sequence[SearchAccessor[T]] = ()
    filters: Mapping[str, FilterPredicate[T]] = field(default_factory=dict)
    sort_fields: Mapping[str, SortKey[T]] = field(default_factory=dict)
    default_filters: Mapping[str, str] = field(default_factory=dict)
    default_sort_by: str | None = None
    default_sort_order: SortOrder = SortOrder.ASC
    limit: int = 10
    mode: ListMode = ListMode.CLIENT
    search_debounce_ms: int = DEFAULT_SEARCH_DEBOUNCE_MS
    param_names: Mapping[str, str] = field(default_factory=dict)

    def with_settings(self, settings: ListViewSettings | None) -> ListViewConfig[T]:
        """config.yaml 의 list_views.<name> 값으로 기본값을 덮어쓴 사본을 만든다."""
        if settings is None:
            return self
        overrides: dict[str, Any] = {}
        if settings.limit is not None:
            overrides["limit"] = settings.limit
        if settings.mode is not None:
            overrides["mode"] = ListMode(settings.mode)
        if settings.search_debounce_ms is not None:
            overrides["search_debounce_ms"] = settings.search_debounce_ms
        if not overrides:
            return self
        return replace(self, **overrides)

    def initial_filter_state(self) -> FilterState:
        return FilterState(
            search="",
            filters=dict(self.default_filters),
            sort_by=self.default_sort_by,
            sort_order=self.default_sort_order,
        )


def _is_unset(value: Any) -> bool:
    return value is None or value == "" or value == ALL


def matches_search(item: T, search: str, accessors: Iterable[SearchAccessor[T]]) -> bool:
    needle = search.strip().casefold()
    if not needle:
        return True
    for accessor in accessors:
        value = accessor(item)
        if value and needle in str(value).casefold():
            return True
    return False


def apply_filters(items: Iterable[T], state: FilterState, config: ListViewConfig[T]) -> list[T]:
    active = [
        (config.filters[name], value)
        for name, value in state.filters.items()
        if not _is_unset(value) and name in config.filters
    ]
    return [
        item
        for item in items
        if matches_search(item, state.search, config.search_fields)
        and all(predicate(item, value) for predicate, value in active)
    ]


def _normalize_sort_value(value: Any) -> Any:
    if isinstance(value, str):
        return value.casefold()
    if isinstance(value, datetime):
        return value.timestamp()
    if isinstance(value, bool):
        return int(value)
    return value


def compare_values(a: Any, b: Any) -> int:
    """-1/0/1 3-way 비교. None 은 항상 가장 작은 값으로 본다."""
    a = _normalize_sort_value(a)
    b = _normalize_sort_value(b)
    if a is None and b is None:
        return 0
    if a is None:
        return -1
    if b is None:
        return 1
    try:
        return (a > b) - (a < b)
    except TypeError:
        a, b = str(a), str(b)
        return (a > b) - (a < b)


def sort_items(
    items: Iterable[T],
    sort_by: str | None,
    sort_order: SortOrder | str,
    config: ListViewConfig[T],
) -> list[T]:
    """안정 정렬. 내림차순도 비교 결과만 뒤집으므로 같은 키의 원래 순서가 유지된다."""
    key = config.sort_fields.get(sort_by) if sort_by else None
    if key is None:
        return list(items)

    sign = -1 if SortOrder(sort_order) == SortOrder.DESC else 1

    def comparator(a: T, b: T) -> int:
        return sign * compare_values(key(a), key(b))

    return sorted(items, key=functools.cmp_to_key(comparator))


def compute_page_window(
    current_page: int,
    total_pages: int,
    max_visible: int = MAX_VISIBLE_PAGES,
) -> PageWindow:
    if total_pages <= 0:
        return PageWindow(pages=[], current=current_page, total_pages=0)

    current = min(max(1, current_page), total_pages)
    start = max(1, current - max_visible // 2)
    end = min(total_pages, start + max_visible - 1)
    if end - start + 1 < max_visible:
        start = max(1, end - max_visible + 1)

    return PageWindow(
        pages=list(range(start, end + 1)),
        current=current,
        total_pages=total_pages,
        show_first=start > 1,
        leading_ellipsis=start > 2,
        trailing_ellipsis=end < total_pages - 1,
        show_last=end < total_pages,
        has_previous=current > 1,
        has_next=current < total_pages,
    )


def _to_query_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def build_query_params(
    state: FilterState,
    pagination: PaginationState,
    config: ListViewConfig[Any],
) -> dict[str, Any]:
    """목록 조회 쿼리 파라미터. client 모드는 페이지 정보만, server 모드는 필터/정렬까지 보낸다."""
    params: dict[str, Any] = {"page": pagination.page, "limit": pagination.limit}
    if config.mode != ListMode.SERVER:
        return params

    search = state.search.strip()
    if search:
        params["search"] = search
    for name, value in state.filters.items():
        if _is_unset(value):
            continue
        params[config.param_names.get(name, name)] = _to_query_value(value)
    if state.sort_by:
        params["sortBy"] = state.sort_by
        params["sortOrder"] = str(state.sort_order)
    return params


class ListView(Generic[T]):
    """목록 화면 하나의 상태와 조회 흐름.

    - 필터 상태가 바뀌면 항상 1페이지로 돌아간다.
    - 나중에 시작한 조회가 있으면 먼저 시작한 조회의 응답은 버린다.
    - close 이후에는 조회를 시작하지 않고, 도착한 응답도 반영하지 않는다.
    """

    def __init__(
        self,
        config: ListViewConfig[T],
        fetcher: PageFetcher[T],
        *,
        settings: ListViewSettings | None = None,
        scope: ViewScope | None = None,
    ) -> None:
        self.config = config.with_settings(settings)
        self._fetcher = fetcher
        self._scope = scope or ViewScope(f"list:{self.config.name}")
        self.filter_state = self.config.initial_filter_state()
        self.pagination = PaginationState(limit=self.config.limit)
        self.items: list[T] = []
        self.error: str | None = None
        self.loading = False
        self._generation = 0
        self._debounce_task: asyncio.Task[None] | None = None

    @property
    def is_server_mode(self) -> bool:
        return self.config.mode == ListMode.SERVER

    @property
    def visible_rows(self) -> list[T]:
        if self.is_server_mode:
            return list(self.items)
        filtered = apply_filters(self.items, self.filter_state, self.config)
        return sort_items(
            filtered,
            self.filter_state.sort_by,
            self.filter_state.sort_order,
            self.config,
        )

    @property
    def filtered_count(self) -> int:
        return len(self.visible_rows)

    @property
    def page_window(self) -> PageWindow:
        return compute_page_window(self.pagination.page, self.pagination.total_pages)

    def query_params(self) -> dict[str, Any]:
        return build_query_params(self.filter_state, self.pagination, self.config)

    async def refresh(self) -> None:
        """현재 상태로 한 번 조회한다. 오류는 error 문자열로만 남긴다."""
        self._scope.ensure_open()
        self._generation += 1
        generation = self._generation
        params = self.query_params()
        self.loading = True

        try:
            page = await self._fetcher(params)
        except ConsoleError as exc:
            if self._is_current(generation):
                self.error = str(exc)
                self.loading = False
            logger.warning(
                "list fetch failed: %s", exc, extra={"list_view": self.config.name}
            )
            return

        if not self._is_current(generation):
            logger.debug(
                "discarding stale list response", extra={"list_view": self.config.name}
            )
            return

        self.items = list(page.items)
        self.pagination.total = page.pagination.total
        self.pagination.clamp()
        self.error = None
        self.loading = False

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and not self._scope.closed

    # ------------------------------------------------------------------
    # 상태 변경
    # ------------------------------------------------------------------
    def set_search(self, search: str) -> None:
        if search == self.filter_state.search:
            return
        self.filter_state.search = search
        self._on_filter_changed(debounce=True)

    def set_filter(self, name: str, value: str) -> None:
        if self.filter_state.filters.get(name) == value:
            return
        self.filter_state.filters[name] = value
        self._on_filter_changed()

    def set_sort(self, sort_by: str, sort_order: SortOrder | str | None = None) -> None:
        order = SortOrder(sort_order) if sort_order is not None else self.filter_state.sort_order
        if sort_by == self.filter_state.sort_by and order == self.filter_state.sort_order:
            return
        self.filter_state.sort_by = sort_by
        self.filter_state.sort_order = order
        self._on_filter_changed()

    def toggle_sort_order(self) -> None:
        current = self.filter_state.sort_order
        self.filter_state.sort_order = (
            SortOrder.ASC if current == SortOrder.DESC else SortOrder.DESC
        )
        self._on_filter_changed()

    def reset_filters(self) -> None:
        self.filter_state = self.config.initial_filter_state()
        self._on_filter_changed()

    def go_to_page(self, page: int) -> None:
        target = min(max(1, page), max(1, self.pagination.total_pages))
        if target == self.pagination.page:
            return
        self.pagination.page = target
        self._cancel_debounce()
        self._scope.spawn(self.refresh(), name=f"{self.config.name}:page")

    def next_page(self) -> None:
        self.go_to_page(self.pagination.page + 1)

    def previous_page(self) -> None:
        self.go_to_page(self.pagination.page - 1)

    def _on_filter_changed(self, *, debounce: bool = False) -> None:
        self._scope.ensure_open()
        was_first_page = self.pagination.page == 1
        self.pagination.page = 1

        if not self.is_server_mode:
            # 필터링은 메모리에서 하지만, 1페이지로 돌아왔다면 해당 페이지를 다시 받아와야 한다.
            if not was_first_page:
                self._scope.spawn(self.refresh(), name=f"{self.config.name}:page")
            return

        self._cancel_debounce()
        if debounce:
            delay = self.config.search_debounce_ms / 1000
            self._debounce_task = self._scope.spawn(
                self._refresh_after(delay), name=f"{self.config.name}:search"
            )
        else:
            self._scope.spawn(self.refresh(), name=f"{self.config.name}:filter")

    def _cancel_debounce(self) -> None:
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = None

    async def _refresh_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        await self.refresh()

    # ------------------------------------------------------------------
    # 수명
    # ------------------------------------------------------------------
    async def wait_idle(self) -> None:
        await self._scope.wait_idle()

    def close(self) -> None:
        self._debounce_task = None
        self._scope.close()
