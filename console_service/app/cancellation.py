from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any, TypeVar

from .exceptions import RequestCancelledError


logger = logging.getLogger(__name__)

T = TypeVar("T")


class ViewScope:
    """화면(뷰) 하나의 수명에 묶인 비동기 작업 묶음.

    - spawn 으로 시작한 작업은 모두 이 스코프에 속한다.
    - close 이후에는 진행 중인 작업을 취소하고, 새 작업 시작이나 늦게 도착한 응답 반영을 막는다.
    """

    def __init__(self, name: str = "view") -> None:
        self.name = name
        self._tasks: set[asyncio.Task[Any]] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def ensure_open(self) -> None:
        if self._closed:
            raise RequestCancelledError(f"view scope closed: {self.name}")

    def spawn(self, coro: Coroutine[Any, Any, T], *, name: str | None = None) -> asyncio.Task[T]:
        if self._closed:
            coro.close()
            raise RequestCancelledError(f"view scope closed: {self.name}")

        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def close(self) -> None:
        """스코프를 닫고 진행 중인 작업을 모두 취소한다. 여러 번 호출해도 안전하다."""
        if self._closed:
            return
        self._closed = True
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            logger.debug("cancelled %d task(s) in scope %s", len(pending), self.name)

    async def wait_idle(self) -> None:
        """현재(그리고 대기 중 새로 생긴) 작업이 모두 끝날 때까지 기다린다."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("task %s in scope %s failed: %r", task.get_name(), self.name, exc)
