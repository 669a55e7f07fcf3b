"""결제 상태 해석기.

결제 처리사의 상태 값/거절 코드를 사용자에게 보여줄 메시지와 화면 상태(pending/success/failure)로
바꾼다. 상태 전이는 처리사가 일으키고 우리는 재조회로만 관찰하므로, 엄격한 상태 머신이 아니라
세 개의 버킷으로 분류한다.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from gameroom_common.models.payment import Payment, PaymentStatus

from ..config import PaymentPollingConfig
from ..repositories.interfaces import PaymentRepositoryInterface


logger = logging.getLogger(__name__)


class PaymentUiState(StrEnum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"


PENDING_STATUSES = frozenset(
    {
        PaymentStatus.CREATED,
        PaymentStatus.SAVED,
        PaymentStatus.APPROVED,
        PaymentStatus.PAYER_ACTION_REQUIRED,
        PaymentStatus.PROCESSING,
        PaymentStatus.PENDING,
        PaymentStatus.REQUIRES_CONFIRMATION,
        PaymentStatus.REQUIRES_CAPTURE,
    }
)
SUCCESS_STATUSES = frozenset({PaymentStatus.SUCCEEDED, PaymentStatus.COMPLETED})
FAILURE_STATUSES = frozenset(
    {
        PaymentStatus.FAILED,
        PaymentStatus.CANCELED,
        PaymentStatus.EXPIRED,
        PaymentStatus.INCOMPLETE,
        PaymentStatus.REFUNDED,
        PaymentStatus.BLOCKED,
        PaymentStatus.VOIDED,
        PaymentStatus.REQUIRES_PAYMENT_METHOD,
    }
)

GENERIC_DECLINE_MESSAGE = (
    "Your card was declined. Please try a different card or contact your bank."
)

DECLINE_MESSAGES: dict[str, str] = {
    "insufficient_funds": "Your card has insufficient funds. Please try a different card.",
    "expired_card": "This card has expired. Please use a different card.",
    "incorrect_cvc": "The card's security code is incorrect. Please check it and try again.",
    "invalid_cvc": "The card's security code is invalid. Please check it and try again.",
    "incorrect_number": "The card number is incorrect. Please check it and try again.",
    "invalid_number": "The card number is invalid. Please check it and try again.",
    "invalid_expiry_month": "The card's expiration month is invalid.",
    "invalid_expiry_year": "The card's expiration year is invalid.",
    "incorrect_zip": "The card's postal code is incorrect. Please check it and try again.",
    "card_declined": GENERIC_DECLINE_MESSAGE,
    "generic_decline": GENERIC_DECLINE_MESSAGE,
    "do_not_honor": GENERIC_DECLINE_MESSAGE,
    "lost_card": "This card has been reported lost. Please use a different card.",
    "stolen_card": "This card has been reported stolen. Please use a different card.",
    "pickup_card": "This card cannot be used for this payment. Please use a different card.",
    "fraudulent": "This payment was flagged as potentially fraudulent and was declined.",
    "card_velocity_exceeded": "This card has exceeded its spending limit. Please try again later or use a different card.",
    "withdrawal_count_limit_exceeded": "This card has exceeded its spending limit. Please try again later or use a different card.",
    "card_not_supported": "This card does not support this type of purchase.",
    "currency_not_supported": "This card does not support payments in this currency.",
    "processing_error": "An error occurred while processing your card. Please try again.",
    "try_again_later": "Your card could not be processed right now. Please try again later.",
    "authentication_required": "This payment requires authentication. Please try again and complete the verification.",
    "approve_with_id": "The payment could not be authorized. Please try again.",
    "call_issuer": "Your card was declined. Please contact your bank for details.",
    "not_permitted": "This payment is not permitted on your card.",
    "restricted_card": "This card cannot be used for this payment. Please use a different card.",
    "testmode_decline": "A test card was used. Please use a real card.",
}

STATUS_FAILURE_MESSAGES: dict[str, str] = {
    PaymentStatus.FAILED: "Your payment failed. Please try again.",
    PaymentStatus.CANCELED: "Your payment was canceled.",
    PaymentStatus.EXPIRED: "Your payment session expired. Please start a new purchase.",
    PaymentStatus.INCOMPLETE: "Your payment was not completed. Please try again.",
    PaymentStatus.REFUNDED: "This payment has been refunded.",
    PaymentStatus.BLOCKED: "This payment was blocked. Please contact support.",
    PaymentStatus.VOIDED: "This payment was voided.",
    PaymentStatus.REQUIRES_PAYMENT_METHOD: GENERIC_DECLINE_MESSAGE,
}

PENDING_MESSAGE = "Your payment is being processed. You can check its status again in a moment."
REQUIRES_ACTION_MESSAGE = (
    "Additional authentication is required. Please complete the verification "
    "with your bank and submit the payment again."
)
SUCCESS_MESSAGE = "Payment successful! Your tokens have been added to your account."
SCHEDULED_SUCCESS_MESSAGE = "Payment successful! Your tokens will be added to your account shortly."


def decline_message(code: str | None) -> str:
    """거절 코드 → 사용자 메시지. 모르는 코드(또는 코드 없음)도 항상 일반 거절 문구를 돌려준다."""
    if not code:
        return GENERIC_DECLINE_MESSAGE
    return DECLINE_MESSAGES.get(code.strip().lower(), GENERIC_DECLINE_MESSAGE)


@dataclass(slots=True)
class PaymentStatusView:
    state: PaymentUiState
    message: str
    can_check_status: bool = False
    can_retry: bool = False
    requires_user_action: bool = False
    scheduled_for: datetime | None = None

    @property
    def scheduled_banner(self) -> str | None:
        if self.scheduled_for is None:
            return None
        return f"Your tokens are scheduled to be added at {self.scheduled_for.isoformat()}."


def classify_status(status: str) -> PaymentUiState:
    normalized = status.strip().lower()
    if normalized in SUCCESS_STATUSES:
        return PaymentUiState.SUCCESS
    if normalized in FAILURE_STATUSES:
        return PaymentUiState.FAILURE
    # pending 버킷과 알 수 없는 상태는 모두 재조회 대상으로 둔다.
    return PaymentUiState.PENDING


def interpret_status(
    status: str,
    *,
    decline_code: str | None = None,
    tokens_scheduled_for: datetime | None = None,
    tokens_added: bool = False,
) -> PaymentStatusView:
    normalized = status.strip().lower()

    if normalized == PaymentStatus.REQUIRES_ACTION:
        return PaymentStatusView(
            state=PaymentUiState.PENDING,
            message=REQUIRES_ACTION_MESSAGE,
            requires_user_action=True,
        )

    state = classify_status(normalized)

    if state is PaymentUiState.SUCCESS:
        scheduled = tokens_scheduled_for if not tokens_added else None
        return PaymentStatusView(
            state=state,
            message=SCHEDULED_SUCCESS_MESSAGE if scheduled else SUCCESS_MESSAGE,
            scheduled_for=scheduled,
        )

    if state is PaymentUiState.FAILURE:
        if decline_code:
            message = decline_message(decline_code)
        else:
            message = STATUS_FAILURE_MESSAGES.get(normalized, GENERIC_DECLINE_MESSAGE)
        return PaymentStatusView(
            state=state,
            message=message,
            can_retry=normalized != PaymentStatus.REFUNDED,
        )

    return PaymentStatusView(
        state=PaymentUiState.PENDING,
        message=PENDING_MESSAGE,
        can_check_status=True,
    )


def interpret_payment(payment: Payment) -> PaymentStatusView:
    return interpret_status(
        payment.status,
        decline_code=payment.decline_code,
        tokens_scheduled_for=payment.tokens_scheduled_for,
        tokens_added=payment.tokens_added,
    )


def _should_keep_polling(view: PaymentStatusView) -> bool:
    return view.state is PaymentUiState.PENDING and not view.requires_user_action


class PaymentStatusService:
    """결제 완료 화면에서 쓰는 상태 조회/폴링."""

    def __init__(
        self,
        payment_repo: PaymentRepositoryInterface,
        polling: PaymentPollingConfig | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._payment_repo = payment_repo
        self._polling = polling or PaymentPollingConfig()
        self._sleep = sleep

    async def check_status(self, order_id: str) -> tuple[Payment, PaymentStatusView]:
        """주문/결제 의도 id 로 한 번 재조회한다 ("상태 다시 확인" 버튼)."""
        payment = await self._payment_repo.get_by_order(order_id)
        return payment, interpret_payment(payment)

    async def poll_until_settled(self, order_id: str) -> tuple[Payment, PaymentStatusView]:
        """pending 인 동안 지수 백오프로 재조회한다.

        - 최대 시도 횟수를 넘기면 마지막 결과를 그대로 돌려준다 (여전히 pending 일 수 있다).
        - requires_action 은 사용자가 직접 다시 제출해야 하므로 즉시 멈춘다.
        """
        delay = self._polling.initial_delay_seconds
        attempt = 1
        payment, view = await self.check_status(order_id)

        while _should_keep_polling(view) and attempt < self._polling.max_attempts:
            logger.debug(
                "payment %s still pending (attempt %d/%d), retrying in %.1fs",
                order_id,
                attempt,
                self._polling.max_attempts,
                delay,
            )
            await self._sleep(delay)
            delay *= self._polling.backoff_factor
            attempt += 1
            payment, view = await self.check_status(order_id)

        return payment, view
