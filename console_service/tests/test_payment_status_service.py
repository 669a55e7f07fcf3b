from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from gameroom_common.models.payment import Payment
from console_service.app.config import PaymentPollingConfig
from console_service.app.services.payment_status_service import (
    DECLINE_MESSAGES,
    GENERIC_DECLINE_MESSAGE,
    PaymentStatusService,
    PaymentUiState,
    classify_status,
    decline_message,
    interpret_payment,
    interpret_status,
)


def _build_payment(
    status: str,
    *,
    decline_code: str | None = None,
    tokens_scheduled_for: str | None = None,
    tokens_added: bool = False,
) -> Payment:
    payload: dict = {
        "_id": "payment-1",
        "user": "user-1",
        "game": "game-1",
        "tokenPackage": {"tokens": 20, "price": 19},
        "location": "Cedar Park",
        "amount": 19,
        "status": status,
        "paymentIntentId": "pi_123",
        "tokensAdded": tokens_added,
    }
    if decline_code is not None:
        payload["declineCode"] = decline_code
    if tokens_scheduled_for is not None:
        payload["tokensScheduledFor"] = tokens_scheduled_for
    return Payment.model_validate(payload)


class FakePaymentRepository:
    def __init__(self, statuses: list[str]) -> None:
        self._statuses = list(statuses)
        self.by_order_calls: list[str] = []

    async def get_by_order(self, order_id: str) -> Payment:
        self.by_order_calls.append(order_id)
        status = self._statuses.pop(0) if len(self._statuses) > 1 else self._statuses[0]
        return _build_payment(status)


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def test_requires_payment_method_with_insufficient_funds_message() -> None:
    view = interpret_status("requires_payment_method", decline_code="insufficient_funds")

    assert view.state is PaymentUiState.FAILURE
    assert view.message == "Your card has insufficient funds. Please try a different card."
    assert view.can_retry is True


def test_expired_card_message() -> None:
    assert decline_message("expired_card") == "This card has expired. Please use a different card."


@pytest.mark.parametrize(
    "code",
    [*DECLINE_MESSAGES.keys(), "not_a_real_code", "", None, "  INSUFFICIENT_FUNDS  "],
)
def test_decline_lookup_is_total_and_never_returns_raw_code(code: str | None) -> None:
    message = decline_message(code)

    assert message
    if code:
        assert message != code


def test_unknown_decline_code_falls_back_to_generic_message() -> None:
    assert decline_message("weird_processor_code") == GENERIC_DECLINE_MESSAGE
    assert GENERIC_DECLINE_MESSAGE.startswith("Your card was declined")


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        ("created", PaymentUiState.PENDING),
        ("saved", PaymentUiState.PENDING),
        ("approved", PaymentUiState.PENDING),
        ("payer_action_required", PaymentUiState.PENDING),
        ("processing", PaymentUiState.PENDING),
        ("pending", PaymentUiState.PENDING),
        ("succeeded", PaymentUiState.SUCCESS),
        ("COMPLETED", PaymentUiState.SUCCESS),
        ("failed", PaymentUiState.FAILURE),
        ("canceled", PaymentUiState.FAILURE),
        ("expired", PaymentUiState.FAILURE),
        ("incomplete", PaymentUiState.FAILURE),
        ("refunded", PaymentUiState.FAILURE),
        ("blocked", PaymentUiState.FAILURE),
        ("VOIDED", PaymentUiState.FAILURE),
        ("requires_payment_method", PaymentUiState.FAILURE),
        ("something_new", PaymentUiState.PENDING),
    ],
)
def test_status_buckets(status: str, expected: PaymentUiState) -> None:
    assert classify_status(status) is expected


def test_pending_status_offers_manual_check() -> None:
    view = interpret_status("processing")

    assert view.state is PaymentUiState.PENDING
    assert view.can_check_status is True
    assert view.requires_user_action is False


def test_requires_action_asks_user_instead_of_polling() -> None:
    view = interpret_status("requires_action")

    assert view.state is PaymentUiState.PENDING
    assert view.requires_user_action is True
    assert view.can_check_status is False
    assert "authentication" in view.message.lower()


def test_failure_without_decline_code_uses_status_message() -> None:
    view = interpret_status("canceled")

    assert view.message == "Your payment was canceled."
    assert interpret_status("refunded").can_retry is False


def test_success_with_scheduled_tokens_shows_banner() -> None:
    payment = _build_payment("succeeded", tokens_scheduled_for="2026-01-02T10:00:00Z")

    view = interpret_payment(payment)

    assert view.state is PaymentUiState.SUCCESS
    assert view.scheduled_for == datetime(2026, 1, 2, 10, 0, tzinfo=timezone.utc)
    assert view.scheduled_banner is not None
    assert "scheduled" in view.scheduled_banner


def test_success_hides_banner_once_tokens_are_added() -> None:
    payment = _build_payment(
        "succeeded",
        tokens_scheduled_for="2026-01-02T10:00:00Z",
        tokens_added=True,
    )

    view = interpret_payment(payment)

    assert view.scheduled_for is None
    assert view.scheduled_banner is None


def test_check_status_refetches_once_by_order_id() -> None:
    repo = FakePaymentRepository(["processing"])
    service = PaymentStatusService(repo)

    payment, view = asyncio.run(service.check_status("pi_123"))

    assert repo.by_order_calls == ["pi_123"]
    assert payment.order_id == "pi_123"
    assert view.state is PaymentUiState.PENDING


def test_poll_until_settled_backs_off_until_success() -> None:
    repo = FakePaymentRepository(["pending", "processing", "succeeded"])
    sleep = RecordingSleep()
    service = PaymentStatusService(
        repo,
        PaymentPollingConfig(max_attempts=5, initial_delay_seconds=1.0, backoff_factor=2.0),
        sleep=sleep,
    )

    _, view = asyncio.run(service.poll_until_settled("pi_123"))

    assert view.state is PaymentUiState.SUCCESS
    assert len(repo.by_order_calls) == 3
    assert sleep.delays == [1.0, 2.0]


def test_poll_until_settled_stops_at_max_attempts() -> None:
    repo = FakePaymentRepository(["pending"])
    sleep = RecordingSleep()
    service = PaymentStatusService(
        repo,
        PaymentPollingConfig(max_attempts=3, initial_delay_seconds=0.5, backoff_factor=3.0),
        sleep=sleep,
    )

    _, view = asyncio.run(service.poll_until_settled("pi_123"))

    assert view.state is PaymentUiState.PENDING
    assert len(repo.by_order_calls) == 3
    assert sleep.delays == [0.5, 1.5]


def test_poll_until_settled_does_not_poll_requires_action() -> None:
    repo = FakePaymentRepository(["requires_action"])
    sleep = RecordingSleep()
    service = PaymentStatusService(repo, sleep=sleep)

    _, view = asyncio.run(service.poll_until_settled("pi_123"))

    assert view.requires_user_action is True
    assert len(repo.by_order_calls) == 1
    assert sleep.delays == []
