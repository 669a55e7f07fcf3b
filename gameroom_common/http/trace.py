import logging
import time
import uuid

import httpx


REQUEST_ID_HEADER = "X-Request-Id"

# 노이즈를 줄이기 위해 로그에서 제외할 엔드포인트 경로 목록
IGNORED_LOG_PATHS: set[str] = {"/health"}


class OutboundTrace:
    """아웃바운드 HTTP 요청용 Request ID 로그 훅.

    - 나가는 요청에 X-Request-Id 가 없으면 새로 생성해 붙인다.
    - 응답을 받으면 method/path/status/duration 을 담은 "completed request" 로그를 남긴다.
    - 전송 자체가 실패한 경우 ApiClient 가 log_failure 를 호출해 "request failed" 로그를 남긴다.

    httpx.AsyncClient(event_hooks=trace.event_hooks()) 형태로 연결한다.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("request_trace")
        self._started: dict[str, float] = {}

    def event_hooks(self) -> dict[str, list]:
        return {"request": [self.on_request], "response": [self.on_response]}

    async def on_request(self, request: httpx.Request) -> None:
        request_id = request.headers.get(REQUEST_ID_HEADER)
        if not request_id:
            request_id = self._generate_request_id()
            request.headers[REQUEST_ID_HEADER] = request_id
        self._started[request_id] = time.monotonic()

    async def on_response(self, response: httpx.Response) -> None:
        request = response.request
        request_id = request.headers.get(REQUEST_ID_HEADER, "")
        duration = self._elapsed(request_id)

        if not self._should_log_request(request):
            return

        self._logger.info(
            "completed request",
            extra=self._build_log_extra(
                request,
                request_id,
                status=response.status_code,
                duration=duration,
            ),
        )

    def log_failure(self, request: httpx.Request | None, exc: Exception) -> None:
        if request is None:
            self._logger.warning("request failed before sending: %s", exc)
            return

        request_id = request.headers.get(REQUEST_ID_HEADER, "")
        duration = self._elapsed(request_id)
        self._logger.warning(
            "request failed: %s",
            exc,
            extra=self._build_log_extra(request, request_id, duration=duration),
        )

    def _elapsed(self, request_id: str) -> float | None:
        started = self._started.pop(request_id, None)
        if started is None:
            return None
        return time.monotonic() - started

    def _should_log_request(self, request: httpx.Request) -> bool:
        return request.url.path not in IGNORED_LOG_PATHS

    def _build_log_extra(
        self,
        request: httpx.Request,
        request_id: str,
        status: int | None = None,
        duration: float | None = None,
    ) -> dict[str, object]:
        extra: dict[str, object] = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
        }

        params = request.url.params
        if params:
            extra["query_params"] = {
                key: values[0] if len(values) == 1 else values
                for key in params.keys()
                for values in [params.get_list(key)]
            }

        if status is not None:
            extra["status"] = status

        if duration is not None:
            extra["duration"] = f"{duration * 1000:.3f}ms"

        return extra

    def _generate_request_id(self) -> str:
        return uuid.uuid4().hex
