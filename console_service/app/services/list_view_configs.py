"""엔티티별 관리자 목록 화면 선언."""

from __future__ import annotations

from gameroom_common.models.game import Game
from gameroom_common.models.payment import Payment
from gameroom_common.models.token_balance import TokenBalance
from gameroom_common.models.user import User

from .list_view_service import ListMode, ListViewConfig, SortOrder


TOKEN_RANGES: dict[str, tuple[int, int | None]] = {
    "0-100": (0, 100),
    "100-500": (101, 500),
    "500-1000": (501, 1000),
    "1000+": (1001, None),
}


def in_token_range(tokens: int, range_name: str) -> bool:
    """토큰 구간 필터. 구간 경계는 위쪽에 포함된다 (100 은 0-100, 101 은 100-500)."""
    bounds = TOKEN_RANGES.get(range_name)
    if bounds is None:
        return True
    low, high = bounds
    if tokens < low:
        return False
    return high is None or tokens <= high


def _user_status_matches(user: User, value: str) -> bool:
    if value == "active":
        return not user.is_blocked
    if value == "inactive":
        return user.is_blocked
    return True


GAMES_LIST = ListViewConfig[Game](
    name="games",
    search_fields=(lambda g: g.name, lambda g: g.category),
    filters={
        "status": lambda g, v: g.status == v,
        "category": lambda g, v: g.category == v,
        "location": lambda g, v: any(loc.name == v for loc in g.locations),
    },
    sort_fields={
        "name": lambda g: g.name,
        "category": lambda g: g.category,
        "status": lambda g: g.status,
        "totalSales": lambda g: g.total_sales,
        "createdAt": lambda g: g.created_at,
    },
    default_sort_by="createdAt",
    default_sort_order=SortOrder.DESC,
    limit=10,
    mode=ListMode.CLIENT,
)

USERS_LIST = ListViewConfig[User](
    name="users",
    search_fields=(
        lambda u: u.firstname,
        lambda u: u.lastname,
        lambda u: u.full_name,
        lambda u: u.email,
        lambda u: u.username,
    ),
    filters={
        "role": lambda u, v: u.role == v,
        "status": _user_status_matches,
    },
    sort_fields={
        "name": lambda u: u.full_name,
        "email": lambda u: u.email,
        "role": lambda u: u.role,
        "createdAt": lambda u: u.created_at,
        "lastLogin": lambda u: u.last_login,
    },
    default_filters={"role": "all", "status": "all"},
    default_sort_by="createdAt",
    default_sort_order=SortOrder.DESC,
    limit=10,
    mode=ListMode.CLIENT,
)

PAYMENTS_LIST = ListViewConfig[Payment](
    name="payments",
    search_fields=(
        lambda p: p.metadata.game_name or p.game.name,
        lambda p: p.metadata.user_full_name,
        lambda p: p.metadata.user_email,
    ),
    filters={
        "status": lambda p, v: p.normalized_status == v.lower(),
        "location": lambda p, v: p.location == v,
        "tokens": lambda p, v: in_token_range(p.token_package.tokens, v),
    },
    sort_fields={
        "createdAt": lambda p: p.created_at,
        "amount": lambda p: p.amount,
        "tokens": lambda p: p.token_package.tokens,
        "game": lambda p: p.metadata.game_name or p.game.name,
        "user": lambda p: p.metadata.user_full_name,
        "location": lambda p: p.location,
        "status": lambda p: p.normalized_status,
    },
    default_filters={"status": "all", "location": "all", "tokens": "all"},
    default_sort_by="createdAt",
    default_sort_order=SortOrder.DESC,
    limit=10,
    mode=ListMode.SERVER,
    param_names={"tokens": "tokenRange"},
)

TOKEN_BALANCES_LIST = ListViewConfig[TokenBalance](
    name="tokens",
    search_fields=(
        lambda b: b.user.full_name,
        lambda b: b.user.email,
        lambda b: b.game.name,
        lambda b: b.location,
    ),
    filters={
        "game": lambda b, v: b.game.id == v,
        "location": lambda b, v: b.location == v,
        "tokens": lambda b, v: in_token_range(b.tokens, v),
    },
    sort_fields={
        "user": lambda b: b.user.full_name,
        "game": lambda b: b.game.name,
        "location": lambda b: b.location,
        "tokens": lambda b: b.tokens,
        "updatedAt": lambda b: b.updated_at,
    },
    default_filters={"game": "all", "location": "all"},
    default_sort_by="user",
    default_sort_order=SortOrder.ASC,
    limit=15,
    mode=ListMode.SERVER,
    param_names={"tokens": "tokenRange"},
)

# 캐셔 화면은 담당 매장 잔액 전체를 한 번에 받아 메모리에서 거른다.
CASHIER_TOKEN_BALANCES_LIST = ListViewConfig[TokenBalance](
    name="cashier_tokens",
    search_fields=TOKEN_BALANCES_LIST.search_fields,
    filters=TOKEN_BALANCES_LIST.filters,
    sort_fields=TOKEN_BALANCES_LIST.sort_fields,
    default_filters={"game": "all", "location": "all"},
    default_sort_by="user",
    default_sort_order=SortOrder.ASC,
    limit=15,
    mode=ListMode.CLIENT,
)
