from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import urlencode

from gameroom_common.models.game import Game, GameStatus, TokenPackage
from gameroom_common.models.payment import Payment, PaymentIntent

from ..exceptions import ClientValidationError, PaymentDeclinedError
from ..repositories.interfaces import GameRepositoryInterface, PaymentRepositoryInterface
from ..session import Session
from .payment_status_service import PaymentStatusView, PaymentUiState, decline_message, interpret_payment


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CheckoutSession:
    """결제 화면을 그리는 데 필요한 값 묶음 (게임, 선택한 패키지/매장, 결제 의도)."""

    game: Game
    package: TokenPackage
    package_index: int
    location: str
    intent: PaymentIntent


def parse_package_index(raw: str | int | None) -> int:
    """쿼리 문자열의 packageIndex. 비어 있거나 숫자가 아니면 0 번 패키지로 본다."""
    if raw is None or raw == "":
        return 0
    try:
        return int(str(raw).strip())
    except ValueError:
        return 0


def checkout_path(game_id: str, package_index: int, location: str) -> str:
    query = urlencode(
        {"gameId": game_id, "packageIndex": package_index, "location": location}
    )
    return f"/checkout?{query}"


class CheckoutService:
    """토큰 패키지 구매 흐름.

    - 로그인하지 않았으면 돌아올 URL 을 세션에 남기고 요청 전에 거절한다.
    - 게임/패키지/매장을 검증한 뒤 결제 의도를 만든다.
    - 처리사 승인 후 백엔드에 확정을 요청하고, 결과를 상태 해석기로 해석한다.
    """

    def __init__(
        self,
        session: Session,
        game_repo: GameRepositoryInterface,
        payment_repo: PaymentRepositoryInterface,
    ) -> None:
        self._session = session
        self._game_repo = game_repo
        self._payment_repo = payment_repo

    async def start(
        self,
        game_id: str | None,
        location: str | None,
        package_index: str | int | None = None,
    ) -> CheckoutSession:
        if not game_id or not location:
            raise ClientValidationError("Missing required parameters")

        index = parse_package_index(package_index)

        if not self._session.is_authenticated:
            self._session.redirect_url = checkout_path(game_id, index, location)
            raise ClientValidationError("Please log in to purchase tokens")

        game = await self._game_repo.get(game_id)
        if game.status != GameStatus.ACTIVE:
            raise ClientValidationError("This game is not available for purchase")
        if not 0 <= index < len(game.token_packages):
            raise ClientValidationError("Invalid token package")
        if not game.is_available_at(location):
            raise ClientValidationError(f"{game.name} is not available at {location}")

        intent = await self._payment_repo.create_payment_intent(game_id, index, location)
        logger.info(
            "payment intent created (game=%s, package=%d, location=%s)",
            game_id,
            index,
            location,
        )
        return CheckoutSession(
            game=game,
            package=game.token_packages[index],
            package_index=index,
            location=location,
            intent=intent,
        )

    async def confirm(self, payment_intent_id: str) -> tuple[Payment, PaymentStatusView]:
        """처리사 승인이 끝난 결제 의도를 백엔드에 확정 요청한다.

        실패 버킷이면 거절 코드와 사용자 메시지를 담은 PaymentDeclinedError 를 던진다.
        """
        if not payment_intent_id:
            raise ClientValidationError("Payment ID is required")

        payment = await self._payment_repo.confirm_payment(payment_intent_id)
        view = interpret_payment(payment)
        if view.state is PaymentUiState.FAILURE:
            raise PaymentDeclinedError(payment.decline_code, view.message)
        return payment, view

    @staticmethod
    def processor_error(code: str | None, message: str | None = None) -> PaymentDeclinedError:
        """백엔드까지 가기 전에 처리사가 돌려준 카드 오류를 같은 거절 테이블로 변환한다."""
        if code:
            return PaymentDeclinedError(code, decline_message(code))
        return PaymentDeclinedError(None, message or "Payment failed")
