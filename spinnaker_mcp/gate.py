from __future__ import annotations

import logging
import time
from typing import Optional, Protocol, Sequence
from urllib.parse import quote

import httpx

DEFAULT_TIMEOUT = 30.0

logger = logging.getLogger(__name__)


class GateClientError(RuntimeError):
    """Raised when the Gate client cannot complete a request."""


class GateClientResponseError(GateClientError):
    """Raised when Gate answers with a non-success HTTP status."""

    def __init__(self, status_code: int, message: str, response_body: Optional[bytes] = None):
        super().__init__(f"http_{status_code}: {message}")
        self.status_code = status_code
        self.response_body = response_body or b""


class GateOperations(Protocol):
    """The Gate calls the tool dispatcher depends on."""

    def get_all_applications(self) -> bytes: ...

    def get_pipelines(self, application: str) -> bytes: ...

    def get_latest_executions_by_config_ids(
        self, pipeline_config_ids: Sequence[str], *, limit: Optional[int] = None
    ) -> bytes: ...


class GateClient:
    """Synchronous HTTP client for the Spinnaker Gate API.

    Methods return the raw response body; callers decide how to read it.
    Transient failures (429, 5xx, transport errors) are retried until
    ``retry_timeout`` seconds have passed since the first attempt. A zero
    ``retry_timeout`` disables retries.
    """

    def __init__(
        self,
        base_url: str,
        *,
        auth: Optional[httpx.Auth] = None,
        timeout: float = DEFAULT_TIMEOUT,
        retry_timeout: float = 0.0,
        backoff_factor: float = 0.5,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.retry_timeout = max(0.0, float(retry_timeout))
        self.backoff_factor = float(backoff_factor)
        self._client = httpx.Client(
            base_url=self.base_url,
            auth=auth,
            headers={"Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    def __enter__(self) -> "GateClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def get_all_applications(self) -> bytes:
        return self._request("/applications")

    def get_pipelines(self, application: str) -> bytes:
        try:
            escaped = quote(application, safe="")
        except UnicodeEncodeError as exc:
            raise GateClientError(f"cannot encode application name: {exc}") from exc
        return self._request(f"/applications/{escaped}/pipelines")

    def get_latest_executions_by_config_ids(
        self, pipeline_config_ids: Sequence[str], *, limit: Optional[int] = None
    ) -> bytes:
        params: dict[str, str | int] = {"pipelineConfigIds": ",".join(pipeline_config_ids)}
        if limit is not None:
            params["limit"] = limit
        return self._request("/executions", params)

    def _request(self, path: str, params: Optional[dict[str, str | int]] = None) -> bytes:
        started = time.monotonic()
        attempt = 0

        while True:
            try:
                response = self._client.get(path, params=params)
            except httpx.RequestError as exc:
                if isinstance(exc, httpx.TransportError) and self._has_time_remaining(started):
                    self._sleep(attempt, started)
                    attempt += 1
                    continue
                raise GateClientError(f"GET {path} failed: {exc}") from exc
            except UnicodeEncodeError as exc:
                raise GateClientError(f"GET {path} failed: cannot encode request: {exc}") from exc

            if response.status_code < 400:
                return response.content
            if self._should_retry(response.status_code) and self._has_time_remaining(started):
                logger.warning(
                    "gate.retry",
                    extra={"event": {"path": path, "status": response.status_code, "attempt": attempt}},
                )
                self._sleep(attempt, started)
                attempt += 1
                continue
            message = self._derive_error_message(response.content, response.reason_phrase)
            raise GateClientResponseError(response.status_code, message, response.content)

    def _has_time_remaining(self, started: float) -> bool:
        return time.monotonic() - started < self.retry_timeout

    def _should_retry(self, status_code: int) -> bool:
        if status_code == 429:
            return True
        return status_code >= 500

    def _sleep(self, attempt: int, started: float) -> None:
        remaining = self.retry_timeout - (time.monotonic() - started)
        time.sleep(max(0.0, min(self.backoff_factor * (2**attempt), remaining)))

    def _derive_error_message(self, body: bytes, reason: Optional[str]) -> str:
        text = body.decode("utf-8", "ignore").strip()
        if text:
            return text
        if reason:
            return reason
        return "http_error"
