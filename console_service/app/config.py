from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


DEFAULT_CONFIG_FILE_NAME = "config.yaml"
DEFAULT_API_BASE_URL = "http://localhost:5000/api"
DEFAULT_SEARCH_DEBOUNCE_MS = 1000

GAMEROOM_API_BASE_URL = "GAMEROOM_API_BASE_URL"
GAMEROOM_API_TIMEOUT_SECONDS = "GAMEROOM_API_TIMEOUT_SECONDS"
GAMEROOM_SESSION_FILE = "GAMEROOM_SESSION_FILE"
GAMEROOM_CONFIG_FILE = "GAMEROOM_CONFIG_FILE"


@dataclass(slots=True)
class ApiConfig:
    """백엔드 REST API 접속 설정."""

    base_url: str
    timeout_seconds: float = 30.0


@dataclass(slots=True)
class ListViewSettings:
    """관리자 목록 화면 하나에 대한 설정 덮어쓰기 값. None 이면 화면 기본값을 쓴다."""

    limit: int | None = None
    mode: str | None = None
    search_debounce_ms: int | None = None


@dataclass(slots=True)
class PaymentPollingConfig:
    """결제 상태 폴링 정책 (최대 시도 횟수, 첫 대기 시간, 지수 백오프 배수)."""

    max_attempts: int = 5
    initial_delay_seconds: float = 1.0
    backoff_factor: float = 2.0


@dataclass(slots=True)
class AppConfig:
    """console-service 전체 설정 루트."""

    api: ApiConfig
    list_views: dict[str, ListViewSettings] = field(default_factory=dict)
    payment_polling: PaymentPollingConfig = field(default_factory=PaymentPollingConfig)
    session_file: Path | None = None

    def list_view(self, name: str) -> ListViewSettings:
        return self.list_views.get(name) or ListViewSettings()


def load_api_config() -> ApiConfig:
    base_url = (os.getenv(GAMEROOM_API_BASE_URL) or DEFAULT_API_BASE_URL).rstrip("/")

    timeout_raw = os.getenv(GAMEROOM_API_TIMEOUT_SECONDS)
    if not timeout_raw:
        timeout = 30.0
    else:
        try:
            timeout = float(timeout_raw)
        except ValueError as exc:
            raise RuntimeError(
                f"{GAMEROOM_API_TIMEOUT_SECONDS} must be a float if set, got: {timeout_raw!r}"
            ) from exc
        if timeout <= 0:
            raise RuntimeError(
                f"{GAMEROOM_API_TIMEOUT_SECONDS} must be > 0, got: {timeout}"
            )

    return ApiConfig(base_url=base_url, timeout_seconds=timeout)


def _find_config_path() -> Path | None:
    """GAMEROOM_CONFIG_FILE 가 있으면 그 경로를, 없으면 작업 디렉토리부터 상위로 config.yaml 을 찾는다.

    콘솔은 설정 파일 없이도 기본값으로 동작해야 하므로 찾지 못하면 None 을 반환한다.
    """

    explicit = os.getenv(GAMEROOM_CONFIG_FILE)
    if explicit:
        path = Path(explicit)
        if not path.is_file():
            raise RuntimeError(f"{GAMEROOM_CONFIG_FILE} points to a missing file: {path}")
        return path

    current = Path.cwd()
    for directory in (current, *current.parents):
        candidate = directory / DEFAULT_CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate

    return None


def _parse_int(raw: object, *, name: str, path: Path, minimum: int) -> int:
    try:
        value = int(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:  # noqa: TRY003
        raise RuntimeError(f"invalid {name} in {path}: {raw!r}") from exc
    if value < minimum:
        raise RuntimeError(f"{name} in {path} must be >= {minimum}, got: {value}")
    return value


def _parse_float(raw: object, *, name: str, path: Path, minimum: float) -> float:
    try:
        value = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:  # noqa: TRY003
        raise RuntimeError(f"invalid {name} in {path}: {raw!r}") from exc
    if value < minimum:
        raise RuntimeError(f"{name} in {path} must be >= {minimum}, got: {value}")
    return value


def load_list_view_settings(data: dict, path: Path) -> dict[str, ListViewSettings]:
    raw_views = data.get("list_views") or {}
    settings: dict[str, ListViewSettings] = {}
    for name, item in raw_views.items():
        if not isinstance(item, dict):
            continue

        limit = item.get("limit")
        debounce = item.get("search_debounce_ms")
        mode = item.get("mode")
        if mode is not None and str(mode) not in ("client", "server"):
            raise RuntimeError(
                f"list_views.{name}.mode in {path} must be 'client' or 'server', got: {mode!r}"
            )

        settings[str(name)] = ListViewSettings(
            limit=(
                _parse_int(limit, name=f"list_views.{name}.limit", path=path, minimum=1)
                if limit is not None
                else None
            ),
            mode=str(mode) if mode is not None else None,
            search_debounce_ms=(
                _parse_int(
                    debounce,
                    name=f"list_views.{name}.search_debounce_ms",
                    path=path,
                    minimum=0,
                )
                if debounce is not None
                else None
            ),
        )
    return settings


def load_payment_polling_config(data: dict, path: Path) -> PaymentPollingConfig:
    payments = data.get("payments") or {}
    defaults = PaymentPollingConfig()
    return PaymentPollingConfig(
        max_attempts=_parse_int(
            payments.get("poll_max_attempts", defaults.max_attempts),
            name="payments.poll_max_attempts",
            path=path,
            minimum=1,
        ),
        initial_delay_seconds=_parse_float(
            payments.get("poll_initial_delay_seconds", defaults.initial_delay_seconds),
            name="payments.poll_initial_delay_seconds",
            path=path,
            minimum=0.0,
        ),
        backoff_factor=_parse_float(
            payments.get("poll_backoff_factor", defaults.backoff_factor),
            name="payments.poll_backoff_factor",
            path=path,
            minimum=1.0,
        ),
    )


def load_config() -> AppConfig:
    """console-service 설정을 로드하여 AppConfig 로 반환한다.

    - API 접속 정보와 세션 파일 경로는 환경변수에서 읽는다.
    - 목록 화면/결제 폴링 정책은 config.yaml 이 있을 때만 덮어쓴다.
    """

    api = load_api_config()

    session_raw = os.getenv(GAMEROOM_SESSION_FILE)
    session_file = Path(session_raw).expanduser() if session_raw else None

    path = _find_config_path()
    if path is None:
        return AppConfig(api=api, session_file=session_file)

    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return AppConfig(
        api=api,
        list_views=load_list_view_settings(data, path),
        payment_polling=load_payment_polling_config(data, path),
        session_file=session_file,
    )
