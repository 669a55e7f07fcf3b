from __future__ import annotations

from gameroom_common.models.payment import Payment, PaymentIntent, PaymentStats
from gameroom_common.schemas.pagination import Page

from .api_client import ApiClient, parse_list, parse_model, parse_page
from .interfaces import PaymentRepositoryInterface, QueryParams


class PaymentRepository(PaymentRepositoryInterface):
    """/payments 엔드포인트에 대한 HTTP 접근 레이어."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def create_payment_intent(
        self, game_id: str, package_index: int, location: str
    ) -> PaymentIntent:
        body = await self._client.post(
            "/payments/create-payment-intent",
            json={
                "gameId": game_id,
                "packageIndex": package_index,
                "location": location,
            },
            error_message="Failed to create payment intent",
        )
        return parse_model(body, "paymentIntent", PaymentIntent)

    async def confirm_payment(self, payment_intent_id: str) -> Payment:
        body = await self._client.post(
            "/payments/confirm-payment",
            json={"paymentIntentId": payment_intent_id},
            error_message="Failed to confirm payment",
        )
        return parse_model(body, "payment", Payment)

    async def get(self, payment_id: str) -> Payment:
        body = await self._client.get(
            f"/payments/{payment_id}",
            error_message="Failed to fetch payment",
        )
        return parse_model(body, "payment", Payment)

    async def get_by_order(self, order_id: str) -> Payment:
        body = await self._client.get(
            f"/payments/by-order/{order_id}",
            error_message="Failed to fetch payment",
        )
        return parse_model(body, "payment", Payment)

    async def my_payments(self) -> list[Payment]:
        body = await self._client.get(
            "/payments/user-payments",
            error_message="Failed to fetch payments",
        )
        return parse_list(body, "payments", Payment)

    async def list_all(self, params: QueryParams) -> Page[Payment]:
        body = await self._client.get(
            "/payments/admin/all",
            params=params,
            error_message="Failed to fetch payments",
        )
        return parse_page(body, "payments", Payment)

    async def stats(self) -> PaymentStats:
        body = await self._client.get(
            "/payments/admin/stats",
            error_message="Failed to fetch payment stats",
        )
        return parse_model(body, "stats", PaymentStats)
