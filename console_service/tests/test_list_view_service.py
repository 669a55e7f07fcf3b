from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import pytest

from gameroom_common.models.payment import Payment
from gameroom_common.models.user import User
from gameroom_common.schemas.pagination import Page, PaginationMeta
from console_service.app.cancellation import ViewScope
from console_service.app.config import ListViewSettings
from console_service.app.exceptions import ApiResponseError, RequestCancelledError
from console_service.app.services.list_view_configs import (
    PAYMENTS_LIST,
    USERS_LIST,
    in_token_range,
)
from console_service.app.services.list_view_service import (
    FilterState,
    ListMode,
    ListView,
    ListViewConfig,
    PaginationState,
    SortOrder,
    apply_filters,
    build_query_params,
    compute_page_window,
    sort_items,
)


@dataclass
class Row:
    id: int
    name: str
    score: int | None = None


ROWS_CONFIG = ListViewConfig[Row](
    name="rows",
    search_fields=(lambda r: r.name,),
    sort_fields={"name": lambda r: r.name, "score": lambda r: r.score},
)


def _build_user(user_id: str, *, firstname: str, is_active: bool | None, role: str = "user") -> User:
    payload: dict[str, Any] = {
        "_id": user_id,
        "username": firstname.lower(),
        "firstname": firstname,
        "lastname": "Doe",
        "email": f"{firstname.lower()}@example.com",
        "role": role,
    }
    if is_active is not None:
        payload["isActive"] = is_active
    return User.model_validate(payload)


def _build_payment(payment_id: str, *, tokens: int, status: str = "succeeded") -> Payment:
    return Payment.model_validate(
        {
            "_id": payment_id,
            "user": "user-1",
            "game": {"_id": "game-1", "name": "Galaxy Quest"},
            "tokenPackage": {"tokens": tokens, "price": tokens},
            "location": "Cedar Park",
            "amount": tokens,
            "status": status,
            "metadata": {
                "gameName": "Galaxy Quest",
                "userFirstname": "John",
                "userLastname": "Doe",
                "userEmail": "john@example.com",
            },
        }
    )


@dataclass
class FakePageFetcher:
    items: list[Any] = field(default_factory=list)
    total: int = 0
    calls: list[dict[str, Any]] = field(default_factory=list)
    error: Exception | None = None

    async def __call__(self, params: dict[str, Any]) -> Page[Any]:
        self.calls.append(dict(params))
        if self.error is not None:
            raise self.error
        return Page[Any](
            items=list(self.items),
            pagination=PaginationMeta(
                page=params.get("page", 1),
                limit=params.get("limit", 10),
                total=self.total,
            ),
        )


# ----------------------------------------------------------------------
# 페이지 창
# ----------------------------------------------------------------------
def test_page_window_centers_current_page_with_shortcuts() -> None:
    window = compute_page_window(current_page=7, total_pages=12)

    assert window.pages == [5, 6, 7, 8, 9]
    assert window.show_first is True
    assert window.leading_ellipsis is True
    assert window.trailing_ellipsis is True
    assert window.show_last is True
    assert window.has_previous is True
    assert window.has_next is True


def test_page_window_is_reclamped_at_the_end() -> None:
    window = compute_page_window(current_page=12, total_pages=12)

    assert window.pages == [8, 9, 10, 11, 12]
    assert window.show_last is False
    assert window.has_next is False


def test_page_window_at_first_page_disables_previous() -> None:
    window = compute_page_window(current_page=1, total_pages=12)

    assert window.pages == [1, 2, 3, 4, 5]
    assert window.show_first is False
    assert window.has_previous is False


def test_page_window_without_ellipsis_when_adjacent_to_edge() -> None:
    window = compute_page_window(current_page=4, total_pages=7)

    assert window.pages == [2, 3, 4, 5, 6]
    assert window.show_first is True
    assert window.leading_ellipsis is False
    assert window.trailing_ellipsis is False
    assert window.show_last is True


def test_page_window_is_empty_when_there_are_no_results() -> None:
    window = compute_page_window(current_page=1, total_pages=0)

    assert window.pages == []
    assert window.has_previous is False
    assert window.has_next is False


def test_page_window_size_and_membership_for_all_pages() -> None:
    for total_pages in range(1, 25):
        for current in range(1, total_pages + 1):
            window = compute_page_window(current, total_pages)
            assert len(window.pages) <= 5
            assert len(window.pages) == min(5, total_pages)
            assert current in window.pages


def test_pagination_state_total_pages_and_clamp() -> None:
    state = PaginationState(page=9, limit=10, total=41)

    assert state.total_pages == 5
    state.clamp()
    assert state.page == 5

    empty = PaginationState(page=3, limit=10, total=0)
    assert empty.total_pages == 0
    empty.clamp()
    assert empty.page == 1


# ----------------------------------------------------------------------
# 정렬/필터
# ----------------------------------------------------------------------
@pytest.mark.parametrize("order", [SortOrder.ASC, SortOrder.DESC])
def test_sort_is_stable_for_both_directions(order: SortOrder) -> None:
    rows = [Row(1, "b", 2), Row(2, "a", 1), Row(3, "c", 2), Row(4, "d", 1), Row(5, "e", 2)]

    result = sort_items(rows, "score", order, ROWS_CONFIG)

    ones = [r.id for r in result if r.score == 1]
    twos = [r.id for r in result if r.score == 2]
    assert ones == [2, 4]
    assert twos == [1, 3, 5]
    if order is SortOrder.ASC:
        assert [r.score for r in result] == [1, 1, 2, 2, 2]
    else:
        assert [r.score for r in result] == [2, 2, 2, 1, 1]


def test_sort_compares_strings_case_insensitively_and_puts_none_first() -> None:
    rows = [Row(1, "bravo", 3), Row(2, "Alpha", None), Row(3, "charlie", 1)]

    by_name = sort_items(rows, "name", "asc", ROWS_CONFIG)
    by_score = sort_items(rows, "score", "asc", ROWS_CONFIG)

    assert [r.name for r in by_name] == ["Alpha", "bravo", "charlie"]
    assert [r.id for r in by_score] == [2, 3, 1]


def test_sort_with_unknown_field_keeps_input_order() -> None:
    rows = [Row(2, "b"), Row(1, "a")]

    assert [r.id for r in sort_items(rows, "missing", "asc", ROWS_CONFIG)] == [2, 1]


def test_user_status_filter_treats_missing_flag_as_active() -> None:
    users = [
        _build_user("u1", firstname="Ann", is_active=True),
        _build_user("u2", firstname="Bob", is_active=False),
        _build_user("u3", firstname="Cid", is_active=None),
    ]

    active = apply_filters(users, FilterState(filters={"status": "active"}), USERS_LIST)
    inactive = apply_filters(users, FilterState(filters={"status": "inactive"}), USERS_LIST)
    everyone = apply_filters(users, FilterState(filters={"status": "all", "role": ""}), USERS_LIST)

    assert [u.id for u in active] == ["u1", "u3"]
    assert [u.id for u in inactive] == ["u2"]
    assert len(everyone) == 3


def test_search_matches_full_name_case_insensitively() -> None:
    users = [
        _build_user("u1", firstname="John", is_active=True),
        _build_user("u2", firstname="Jane", is_active=True),
    ]

    result = apply_filters(users, FilterState(search="  JOHN doe "), USERS_LIST)

    assert [u.id for u in result] == ["u1"]


@pytest.mark.parametrize(
    ("tokens", "range_name", "expected"),
    [
        (0, "0-100", True),
        (100, "0-100", True),
        (101, "0-100", False),
        (101, "100-500", True),
        (500, "100-500", True),
        (1000, "500-1000", True),
        (1001, "1000+", True),
        (1000, "1000+", False),
        (5, "unknown", True),
    ],
)
def test_token_range_boundaries(tokens: int, range_name: str, expected: bool) -> None:
    assert in_token_range(tokens, range_name) is expected


def test_payment_filters_combine_status_and_token_range() -> None:
    payments = [
        _build_payment("p1", tokens=50),
        _build_payment("p2", tokens=200),
        _build_payment("p3", tokens=50, status="FAILED"),
    ]

    state = FilterState(filters={"status": "failed", "tokens": "0-100", "location": "all"})

    assert [p.id for p in apply_filters(payments, state, PAYMENTS_LIST)] == ["p3"]


# ----------------------------------------------------------------------
# 쿼리 파라미터
# ----------------------------------------------------------------------
def test_server_query_params_omit_unset_filters_and_rename_token_range() -> None:
    state = FilterState(
        search=" john ",
        filters={"status": "all", "location": "", "tokens": "100-500"},
        sort_by="amount",
        sort_order=SortOrder.DESC,
    )

    params = build_query_params(state, PaginationState(page=2, limit=10), PAYMENTS_LIST)

    assert params == {
        "page": 2,
        "limit": 10,
        "search": "john",
        "tokenRange": "100-500",
        "sortBy": "amount",
        "sortOrder": "desc",
    }


def test_client_query_params_only_carry_pagination() -> None:
    state = FilterState(search="john", filters={"role": "admin"}, sort_by="name")

    params = build_query_params(state, PaginationState(page=1, limit=10), USERS_LIST)

    assert params == {"page": 1, "limit": 10}


# ----------------------------------------------------------------------
# ListView
# ----------------------------------------------------------------------
def _server_rows_view(fetcher: Any, *, debounce_ms: int = 20) -> ListView[Row]:
    config = ListViewConfig[Row](
        name="rows",
        search_fields=ROWS_CONFIG.search_fields,
        sort_fields=ROWS_CONFIG.sort_fields,
        filters={"status": lambda r, v: True},
        mode=ListMode.SERVER,
    )
    return ListView(
        config,
        fetcher,
        settings=ListViewSettings(search_debounce_ms=debounce_ms),
        scope=ViewScope("rows"),
    )


def test_server_mode_search_fetches_once_after_debounce() -> None:
    async def scenario() -> None:
        # given
        fetcher = FakePageFetcher(items=[Row(1, "john")], total=1)
        view = _server_rows_view(fetcher)

        # when: 한 글자씩 입력
        for text in ("j", "jo", "joh", "john"):
            view.set_search(text)
        assert fetcher.calls == []

        await view.wait_idle()

        # then
        assert len(fetcher.calls) == 1
        assert fetcher.calls[0]["search"] == "john"
        assert [r.name for r in view.visible_rows] == ["john"]

    asyncio.run(scenario())


def test_categorical_filter_fetches_immediately_and_supersedes_debounce() -> None:
    async def scenario() -> None:
        fetcher = FakePageFetcher(total=0)
        view = _server_rows_view(fetcher, debounce_ms=10_000)

        view.set_search("jo")
        view.set_filter("status", "failed")
        await view.wait_idle()

        assert fetcher.calls == [
            {"page": 1, "limit": 10, "search": "jo", "status": "failed"}
        ]

    asyncio.run(scenario())


def test_every_filter_change_resets_page_to_one() -> None:
    async def scenario() -> None:
        fetcher = FakePageFetcher(total=100)
        view = _server_rows_view(fetcher)
        await view.refresh()

        changes = [
            lambda: view.set_search("x"),
            lambda: view.set_filter("status", "failed"),
            lambda: view.set_sort("name"),
            lambda: view.toggle_sort_order(),
            lambda: view.reset_filters(),
        ]
        for change in changes:
            view.go_to_page(4)
            await view.wait_idle()
            assert view.pagination.page == 4

            change()
            assert view.pagination.page == 1
            await view.wait_idle()

    asyncio.run(scenario())


def test_go_to_page_is_clamped_and_fetches() -> None:
    async def scenario() -> None:
        fetcher = FakePageFetcher(total=25)
        view = _server_rows_view(fetcher)
        await view.refresh()

        view.go_to_page(99)
        await view.wait_idle()
        view.previous_page()
        await view.wait_idle()
        view.previous_page()
        view.previous_page()
        view.previous_page()
        await view.wait_idle()

        assert [call["page"] for call in fetcher.calls] == [1, 3, 2, 1]
        assert view.page_window.has_previous is False

    asyncio.run(scenario())


def test_stale_response_is_discarded() -> None:
    async def scenario() -> None:
        slow_gate = asyncio.Event()
        seen: list[dict[str, Any]] = []

        async def fetcher(params: dict[str, Any]) -> Page[Any]:
            seen.append(params)
            if params.get("status") == "slow":
                await slow_gate.wait()
                return Page[Any](items=[Row(1, "stale")], pagination=PaginationMeta(total=1))
            return Page[Any](items=[Row(2, "fresh")], pagination=PaginationMeta(total=1))

        view = _server_rows_view(fetcher)

        view.set_filter("status", "slow")
        await asyncio.sleep(0)
        view.set_filter("status", "fast")
        await asyncio.sleep(0)
        slow_gate.set()
        await view.wait_idle()

        assert len(seen) == 2
        assert [r.name for r in view.visible_rows] == ["fresh"]

    asyncio.run(scenario())


def test_client_mode_filters_in_memory_but_keeps_server_total() -> None:
    async def scenario() -> None:
        users = [
            _build_user("u1", firstname="Ann", is_active=True, role="admin"),
            _build_user("u2", firstname="Bob", is_active=True),
            _build_user("u3", firstname="Cid", is_active=False),
        ]
        fetcher = FakePageFetcher(items=users, total=23)
        view = ListView(USERS_LIST, fetcher, scope=ViewScope("users"))
        await view.refresh()

        view.set_filter("role", "admin")
        await view.wait_idle()

        assert [u.id for u in view.visible_rows] == ["u1"]
        assert view.filtered_count == 1
        assert view.pagination.total == 23
        assert view.pagination.total_pages == 3
        # 1페이지에서 바꾼 필터는 다시 조회하지 않는다.
        assert len(fetcher.calls) == 1

    asyncio.run(scenario())


def test_fetch_error_is_kept_as_message() -> None:
    async def scenario() -> None:
        fetcher = FakePageFetcher(error=ApiResponseError(500, "Failed to fetch payments"))
        view = ListView(PAYMENTS_LIST, fetcher, scope=ViewScope("payments"))

        await view.refresh()

        assert view.error == "Failed to fetch payments"
        assert view.loading is False
        assert view.items == []

    asyncio.run(scenario())


def test_closed_view_rejects_changes() -> None:
    async def scenario() -> None:
        fetcher = FakePageFetcher()
        view = _server_rows_view(fetcher)
        view.set_search("pending")

        view.close()
        await view.wait_idle()

        assert fetcher.calls == []
        with pytest.raises(RequestCancelledError):
            view.set_filter("status", "failed")

    asyncio.run(scenario())


def test_settings_override_config_defaults() -> None:
    config = PAYMENTS_LIST.with_settings(
        ListViewSettings(limit=25, mode="client", search_debounce_ms=250)
    )

    assert config.limit == 25
    assert config.mode is ListMode.CLIENT
    assert config.search_debounce_ms == 250
    assert PAYMENTS_LIST.limit == 10
    assert PAYMENTS_LIST.with_settings(ListViewSettings()) is PAYMENTS_LIST
