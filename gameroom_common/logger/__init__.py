import dataclasses
import json
import logging
import os
import sys
from typing import Any


# extra 필드를 관심사별 객체로 묶어 기록한다.
# http: 아웃바운드 요청 트레이스, token_adjustment: 잔액 조정 흐름.
LOG_FIELD_GROUPS: dict[str, tuple[str, ...]] = {
    "http": ("request_id", "method", "path", "query_params", "status", "duration"),
    "token_adjustment": ("balance_key", "delta"),
}

# 그룹 없이 최상위에 그대로 두는 extra 필드.
TOP_LEVEL_LOG_KEYS: tuple[str, ...] = ("list_view",)


def setup_logger(name: str = "gameroom", level: str | None = None) -> logging.Logger:
    """애플리케이션 전역 로거를 설정하고 반환한다.

    Args:
        name: 로거 이름 (기본값: gameroom)
        level: 로그 레벨 (기본값: None -> 환경변수 LOG_LEVEL 또는 INFO 사용)

    Returns:
        설정된 logging.Logger 인스턴스
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")

    # 문자열 레벨을 logging 상수(int)로 변환
    log_level = getattr(logging, level.upper(), logging.INFO)

    service_name = os.getenv("SERVICE_NAME", name)
    logger = logging.getLogger(service_name)
    logger.setLevel(log_level)

    # 이미 핸들러가 있다면 제거 (중복 출력 방지)
    if logger.handlers:
        logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JsonFormatter())

    logger.addHandler(handler)

    # 루트 로거에 핸들러가 없을 때만 동일한 핸들러를 붙여 httpx 등 라이브러리 로그도 같은 포맷으로 남긴다.
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        root_logger.addHandler(handler)
        root_logger.setLevel(log_level)

    return logger


def _log_value(value: Any) -> Any:
    # BalanceKey 같은 dataclass 키는 "user-game-location" 문자열 대신 필드별로 남긴다.
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    return value


class JsonFormatter(logging.Formatter):
    """구조화 로그 수집을 위한 JSON 포맷터.

    - datetime, level, logger, message 필드를 기본으로 포함한다.
    - LOG_FIELD_GROUPS 의 extra 값은 그룹 이름 아래 객체로 모은다.
      (예: {"token_adjustment": {"balance_key": {...}, "delta": 5}})
    - 값이 하나도 없는 그룹은 생략한다.
    - 예외 정보가 있으면 exc_info 필드에 문자열로 추가한다.
    """

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        log_record: dict[str, object] = {
            "datetime": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for group, keys in LOG_FIELD_GROUPS.items():
            fields = {
                key: _log_value(getattr(record, key))
                for key in keys
                if hasattr(record, key)
            }
            if fields:
                log_record[group] = fields

        for key in TOP_LEVEL_LOG_KEYS:
            if hasattr(record, key):
                log_record[key] = _log_value(getattr(record, key))

        service_name = getattr(record, "service_name", None) or os.getenv(
            "SERVICE_NAME"
        )
        if service_name:
            log_record["service_name"] = service_name

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log_record, ensure_ascii=False, default=str)
