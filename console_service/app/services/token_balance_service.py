"""토큰 잔액 뷰모델.

잔액 행마다 "확정 값(서버)"과 "낙관적 편집 값(로컬)"을 겹쳐 하나의 표시 값을 만든다.

- 키별 상태: CONFIRMED(편집 없음) / IN_FLIGHT(요청 진행 중) / FAILED(편집 폐기, 마지막 오류 보관)
- 키별 single-flight: 같은 키에는 한 번에 요청 하나만 보낸다. 진행 중에 들어온 편집은
  하나로 합쳐져, 응답으로 확정된 값을 기준으로 다시 계산한 delta 로 한 번 더 전송된다.
- 서버는 절대값이 아니라 delta 로 잔액을 바꾸므로, 항상 `목표값 - 확정값` 을 보낸다.
- 모든 요청은 ViewScope 에 속하고, close 이후 도착한 응답은 반영하지 않는다.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

from gameroom_common.models.token_balance import BalanceKey, TokenBalance

from ..cancellation import ViewScope
from ..exceptions import ConsoleError
from ..repositories.interfaces import TokenAdjusterInterface


logger = logging.getLogger(__name__)

TOKEN_STEP = 5


class BalancePhase(StrEnum):
    CONFIRMED = "confirmed"
    IN_FLIGHT = "in_flight"
    FAILED = "failed"


@dataclass(slots=True)
class PendingEdit:
    """아직 서버에서 확정되지 않은 낙관적 편집.

    value 는 사용자가 마지막으로 의도한 값, sent_value 는 현재 진행 중인 요청이 목표로 한 값이다.
    두 값이 다르면 응답 이후 후속 요청이 한 번 더 나간다.
    """

    value: int
    request_id: int | None = None
    sent_value: int | None = None


def parse_token_input(raw: str | int | None) -> int:
    """숫자 입력칸 값을 토큰 수량으로 변환한다. 잘못된 입력은 0, 음수는 0 으로 내린다."""
    if raw is None:
        return 0
    try:
        value = int(str(raw).strip())
    except ValueError:
        return 0
    return max(0, value)


class TokenBalanceViewModel:
    def __init__(
        self,
        adjuster: TokenAdjusterInterface,
        *,
        scope: ViewScope | None = None,
        step: int = TOKEN_STEP,
    ) -> None:
        self._adjuster = adjuster
        self._scope = scope or ViewScope("token-balances")
        self._step = step
        self._balances: dict[BalanceKey, TokenBalance] = {}
        self._edits: dict[BalanceKey, PendingEdit] = {}
        self._failures: dict[BalanceKey, str] = {}
        self._flushing: set[BalanceKey] = set()
        self._request_ids = itertools.count(1)

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------
    @property
    def step(self) -> int:
        return self._step

    @property
    def balances(self) -> list[TokenBalance]:
        return list(self._balances.values())

    def load(self, balances: Iterable[TokenBalance]) -> None:
        """서버에서 새로 받은 잔액 목록으로 교체한다.

        요청이 진행 중이지 않은 키의 편집은 더 이상 의미가 없으므로 함께 버린다.
        """
        self._balances = {balance.key: balance for balance in balances}
        for key in list(self._edits):
            if key not in self._flushing:
                self._edits.pop(key)

    def balance(self, key: BalanceKey) -> TokenBalance:
        try:
            return self._balances[key]
        except KeyError:
            raise KeyError(f"unknown balance: {key}") from None

    def displayed_tokens(self, key: BalanceKey) -> int:
        edit = self._edits.get(key)
        if edit is not None:
            return edit.value
        return self.balance(key).tokens

    def displayed_total_with_pending(self, key: BalanceKey) -> int:
        """표시 값에 예약 지급 대기 토큰을 더한 값 (대기 토큰이 있는 행에서 함께 보여준다)."""
        return self.displayed_tokens(key) + self.balance(key).pending_tokens

    def phase(self, key: BalanceKey) -> BalancePhase:
        if key in self._edits:
            return BalancePhase.IN_FLIGHT
        if key in self._failures:
            return BalancePhase.FAILED
        return BalancePhase.CONFIRMED

    def pending_edit(self, key: BalanceKey) -> PendingEdit | None:
        return self._edits.get(key)

    def last_error(self, key: BalanceKey) -> str | None:
        return self._failures.get(key)

    def can_decrement(self, key: BalanceKey) -> bool:
        return self.displayed_tokens(key) >= self._step

    # ------------------------------------------------------------------
    # 편집
    # ------------------------------------------------------------------
    def increment(self, key: BalanceKey) -> None:
        self.apply_delta(key, self._step)

    def decrement(self, key: BalanceKey) -> None:
        self.apply_delta(key, -self._step)

    def apply_delta(self, key: BalanceKey, delta: int) -> None:
        displayed = self.displayed_tokens(key)
        if delta < 0 and displayed < self._step:
            return
        self._set_target(key, max(0, displayed + delta))

    def set_value(self, key: BalanceKey, raw: str | int | None) -> None:
        self._set_target(key, parse_token_input(raw))

    def _set_target(self, key: BalanceKey, value: int) -> None:
        self._scope.ensure_open()
        balance = self.balance(key)
        self._failures.pop(key, None)

        edit = self._edits.get(key)
        if edit is None:
            if value == balance.tokens:
                return
            self._edits[key] = PendingEdit(value=value)
        else:
            edit.value = value

        if key not in self._flushing:
            self._flushing.add(key)
            self._scope.spawn(self._flush(key), name=f"adjust:{key}")

    # ------------------------------------------------------------------
    # 서버 반영
    # ------------------------------------------------------------------
    async def _flush(self, key: BalanceKey) -> None:
        try:
            while True:
                edit = self._edits.get(key)
                if edit is None:
                    return
                if key not in self._balances:
                    # load() 로 행 자체가 사라졌다.
                    self._edits.pop(key, None)
                    return

                confirmed = self.balance(key).tokens
                delta = edit.value - confirmed
                if delta == 0:
                    # 진행 중에 원래 값으로 되돌린 경우: 보낼 필요가 없다.
                    self._edits.pop(key, None)
                    return

                edit.request_id = next(self._request_ids)
                edit.sent_value = edit.value
                try:
                    tokens = await self._adjuster.adjust(
                        key.user_id, key.game_id, key.location, delta
                    )
                except ConsoleError as exc:
                    self.on_adjustment_failed(key, exc)
                    return

                if self._scope.closed or key not in self._balances:
                    return
                logger.info(
                    "token adjustment confirmed",
                    extra={"balance_key": key, "delta": delta},
                )
                self.on_adjustment_confirmed(key, tokens)
        finally:
            self._flushing.discard(key)

    def on_adjustment_confirmed(self, key: BalanceKey, tokens: int) -> None:
        """서버가 돌려준 값으로 확정 잔액을 교체한다.

        진행 중 요청 이후 새 의도가 없으면 편집을 지워, 이후 서버 쪽 변경이 가려지지 않게 한다.
        """
        balance = self.balance(key)
        self._balances[key] = balance.model_copy(update={"tokens": tokens})

        edit = self._edits.get(key)
        if edit is not None and edit.value == edit.sent_value:
            self._edits.pop(key)

    def on_adjustment_failed(self, key: BalanceKey, error: Exception) -> None:
        """편집(및 합쳐진 후속 의도)을 버리고 마지막 확정 값으로 되돌린다. 재시도는 하지 않는다."""
        self._edits.pop(key, None)
        self._failures[key] = str(error) or "Failed to adjust token balance"
        logger.warning(
            "token adjustment failed: %s",
            error,
            extra={"balance_key": key},
        )

    # ------------------------------------------------------------------
    # 수명
    # ------------------------------------------------------------------
    async def wait_idle(self) -> None:
        await self._scope.wait_idle()

    def close(self) -> None:
        self._scope.close()

