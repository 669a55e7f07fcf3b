from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from gameroom_common.http.trace import OutboundTrace
from gameroom_common.logger import setup_logger
from gameroom_common.models.game import Game
from gameroom_common.models.payment import Payment
from gameroom_common.models.token_balance import TokenBalance
from gameroom_common.models.user import User
from gameroom_common.schemas.pagination import Page

from .cancellation import ViewScope
from .config import AppConfig, load_config
from .repositories.api_client import ApiClient, paginate_items
from .repositories.game_repository import GameRepository
from .repositories.interfaces import TokenAdjusterInterface
from .repositories.payment_repository import PaymentRepository
from .repositories.promotion_repository import EventRepository, WinnerRepository
from .repositories.token_repository import CashierTokenRepository, TokenRepository
from .repositories.user_repository import UserRepository
from .services.checkout_service import CheckoutService
from .services.games_service import GamesService
from .services.list_view_configs import (
    CASHIER_TOKEN_BALANCES_LIST,
    GAMES_LIST,
    PAYMENTS_LIST,
    TOKEN_BALANCES_LIST,
    USERS_LIST,
)
from .services.list_view_service import ListView
from .services.overview_service import OverviewService
from .services.payment_status_service import PaymentStatusService
from .services.profile_service import ProfileService
from .services.promotions_service import EventsService, WinnersService
from .services.token_balance_service import TokenBalanceViewModel
from .services.users_service import AuthService, UsersService
from .session import FileSessionStore, Session


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Console:
    """설정/세션/HTTP 클라이언트/레포지토리/서비스를 한 번에 묶은 애플리케이션 루트.

    화면 단위 상태(목록, 토큰 잔액)는 화면을 열 때마다 새 ViewScope 와 함께 만든다.
    """

    config: AppConfig
    session: Session
    session_store: FileSessionStore | None
    client: ApiClient
    games_repo: GameRepository
    users_repo: UserRepository
    tokens_repo: TokenRepository
    cashier_tokens_repo: CashierTokenRepository
    payments_repo: PaymentRepository
    events_repo: EventRepository
    winners_repo: WinnerRepository
    auth: AuthService
    users: UsersService
    games: GamesService
    checkout: CheckoutService
    payment_status: PaymentStatusService
    profile: ProfileService
    events: EventsService
    winners: WinnersService
    overview: OverviewService

    def games_view(self) -> ListView[Game]:
        return ListView(
            GAMES_LIST,
            self.games_repo.list,
            settings=self.config.list_view(GAMES_LIST.name),
        )

    def users_view(self) -> ListView[User]:
        return ListView(
            USERS_LIST,
            self.users_repo.list,
            settings=self.config.list_view(USERS_LIST.name),
        )

    def payments_view(self) -> ListView[Payment]:
        return ListView(
            PAYMENTS_LIST,
            self.payments_repo.list_all,
            settings=self.config.list_view(PAYMENTS_LIST.name),
        )

    def token_balances_view(self) -> ListView[TokenBalance]:
        return ListView(
            TOKEN_BALANCES_LIST,
            self.tokens_repo.list_all,
            settings=self.config.list_view(TOKEN_BALANCES_LIST.name),
        )

    def cashier_token_balances_view(self) -> ListView[TokenBalance]:
        return ListView(
            CASHIER_TOKEN_BALANCES_LIST,
            self._cashier_balances_page,
            settings=self.config.list_view(CASHIER_TOKEN_BALANCES_LIST.name),
        )

    async def _cashier_balances_page(self, params: dict) -> Page[TokenBalance]:
        overview = await self.cashier_tokens_repo.overview()
        # 캐셔 잔액 API 는 페이지를 나누지 않으므로 다른 client 모드 목록과 같은 크기로 잘라 준다.
        return paginate_items(
            overview.balances,
            page=int(params.get("page", 1)),
            limit=params.get("limit"),
        )

    def token_editor(self, *, cashier: bool = False) -> TokenBalanceViewModel:
        adjuster: TokenAdjusterInterface = (
            self.cashier_tokens_repo if cashier else self.tokens_repo
        )
        scope = ViewScope("cashier-tokens" if cashier else "admin-tokens")
        return TokenBalanceViewModel(adjuster, scope=scope)

    def save_session(self) -> None:
        if self.session_store is not None:
            self.session_store.save(self.session)

    async def aclose(self) -> None:
        self.save_session()
        await self.client.aclose()


def create_console(
    config: AppConfig | None = None,
    *,
    session: Session | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Console:
    setup_logger(name="console-service")
    config = config or load_config()

    store = FileSessionStore(config.session_file) if config.session_file else None
    if session is None:
        session = store.load() if store is not None else Session()

    client = ApiClient(
        config.api,
        session,
        transport=transport,
        trace=OutboundTrace(logging.getLogger("console-service.http")),
    )

    games_repo = GameRepository(client)
    users_repo = UserRepository(client)
    tokens_repo = TokenRepository(client)
    cashier_tokens_repo = CashierTokenRepository(client)
    payments_repo = PaymentRepository(client)
    events_repo = EventRepository(client)
    winners_repo = WinnerRepository(client)

    logger.info("console created (api=%s)", config.api.base_url)

    return Console(
        config=config,
        session=session,
        session_store=store,
        client=client,
        games_repo=games_repo,
        users_repo=users_repo,
        tokens_repo=tokens_repo,
        cashier_tokens_repo=cashier_tokens_repo,
        payments_repo=payments_repo,
        events_repo=events_repo,
        winners_repo=winners_repo,
        auth=AuthService(session, users_repo),
        users=UsersService(users_repo),
        games=GamesService(games_repo),
        checkout=CheckoutService(session, games_repo, payments_repo),
        payment_status=PaymentStatusService(payments_repo, config.payment_polling),
        profile=ProfileService(session, users_repo, payments_repo, games_repo, tokens_repo),
        events=EventsService(events_repo),
        winners=WinnersService(winners_repo),
        overview=OverviewService(games_repo, payments_repo, users_repo),
    )
