"""인증 세션.

브라우저 localStorage 에 흩어져 있던 토큰을 명시적인 Session 객체로 모아,
애플리케이션 시작 시 ApiClient 에 주입한다. 영속화가 필요하면 FileSessionStore 를 쓴다.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Session:
    """현재 로그인 상태. 저장하는 값은 인증 토큰과 로그인 후 돌아갈 URL 뿐이다."""

    token: str | None = None
    redirect_url: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def sign_in(self, token: str) -> None:
        self.token = token

    def sign_out(self) -> None:
        self.token = None

    def pop_redirect_url(self) -> str | None:
        """저장된 리다이렉트 URL 을 한 번만 꺼내 쓴다."""
        url, self.redirect_url = self.redirect_url, None
        return url


class FileSessionStore:
    """Session 을 JSON 파일 하나에 저장/복원한다."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def load(self) -> Session:
        if not self._path.is_file():
            return Session()

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            # 깨진 세션 파일은 로그아웃 상태로 취급한다.
            logger.warning("ignoring unreadable session file: %s", self._path)
            return Session()

        if not isinstance(data, dict):
            return Session()

        return Session(
            token=data.get("auth_token") or None,
            redirect_url=data.get("redirect_url") or None,
        )

    def save(self, session: Session) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"auth_token": session.token, "redirect_url": session.redirect_url}
        self._path.write_text(json.dumps(payload), encoding="utf-8")

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)
