from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, Field, model_validator

from gameroom_common.models.game import GameRef, TokenPackage
from gameroom_common.models.utils import WireModel, expand_ref_fields
from gameroom_common.types.datetime import UtcDateTime


class PaymentStatus(StrEnum):
    """결제 처리사(Stripe/PayPal)와 백엔드가 사용하는 결제 상태 값.

    PayPal 은 대문자(CREATED, COMPLETED ...)를 쓰므로 비교 시에는 항상 소문자로 정규화한다.
    """

    CREATED = "created"
    SAVED = "saved"
    APPROVED = "approved"
    PAYER_ACTION_REQUIRED = "payer_action_required"
    PROCESSING = "processing"
    PENDING = "pending"
    REQUIRES_CONFIRMATION = "requires_confirmation"
    REQUIRES_CAPTURE = "requires_capture"
    REQUIRES_ACTION = "requires_action"
    REQUIRES_PAYMENT_METHOD = "requires_payment_method"
    SUCCEEDED = "succeeded"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELED = "canceled"
    EXPIRED = "expired"
    INCOMPLETE = "incomplete"
    REFUNDED = "refunded"
    BLOCKED = "blocked"
    VOIDED = "voided"


class PaymentMetadata(WireModel):
    game_name: str = Field(default="", alias="gameName")
    user_firstname: str = Field(default="", alias="userFirstname")
    user_lastname: str = Field(default="", alias="userLastname")
    user_email: str = Field(default="", alias="userEmail")
    time_restriction: str | None = Field(default=None, alias="timeRestriction")

    @property
    def user_full_name(self) -> str:
        return f"{self.user_firstname} {self.user_lastname}".strip()


class Payment(WireModel):
    """결제(구매 시도) 도메인 모델."""

    id: str = Field(alias="_id")
    user: str | None = None
    game: GameRef
    token_package: TokenPackage = Field(alias="tokenPackage")
    location: str = ""
    amount: float = 0.0
    currency: str = "usd"
    status: str = PaymentStatus.PENDING
    payment_method: str | None = Field(default=None, alias="paymentMethod")
    receipt_url: str | None = Field(default=None, alias="receiptUrl")
    order_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("paypalOrderId", "paymentIntentId", "orderId"),
        serialization_alias="orderId",
    )
    decline_code: str | None = Field(default=None, alias="declineCode")
    tokens_scheduled_for: UtcDateTime | None = Field(
        default=None, alias="tokensScheduledFor"
    )
    tokens_added: bool = Field(default=False, alias="tokensAdded")
    pending_tokens: int = Field(default=0, alias="pendingTokens")
    metadata: PaymentMetadata = Field(default_factory=PaymentMetadata)
    created_at: UtcDateTime | None = Field(default=None, alias="createdAt")
    updated_at: UtcDateTime | None = Field(default=None, alias="updatedAt")

    @model_validator(mode="before")
    @classmethod
    def _expand_refs(cls, data: Any) -> Any:
        # 관리자 목록은 user 를 populate 해서 내려주지만, 표시용 이름/이메일은 metadata 에 있다.
        if isinstance(data, dict) and isinstance(data.get("user"), dict):
            data = {**data, "user": data["user"].get("_id")}
        return expand_ref_fields(data, fields=["game"])

    @property
    def normalized_status(self) -> str:
        return self.status.strip().lower()

    @property
    def is_succeeded(self) -> bool:
        return self.normalized_status in (
            PaymentStatus.SUCCEEDED,
            PaymentStatus.COMPLETED,
        )


class PaymentIntent(WireModel):
    """체크아웃 시작 시 백엔드가 생성해 주는 결제 의도."""

    client_secret: str = Field(alias="clientSecret")
    payment_id: str | None = Field(default=None, alias="paymentId")
    payment_intent_id: str | None = Field(default=None, alias="paymentIntentId")


class PaymentStats(WireModel):
    """관리자 대시보드용 결제 통계."""

    total_payments: int = Field(default=0, alias="totalPayments")
    successful_payments: int = Field(default=0, alias="successfulPayments")
    pending_payments: int = Field(default=0, alias="pendingPayments")
    failed_payments: int = Field(default=0, alias="failedPayments")
    total_revenue: float = Field(default=0.0, alias="totalRevenue")
    recent_payments: int = Field(default=0, alias="recentPayments")
