"""HTTP client with retries and per-call timeouts."""

from __future__ import annotations

from dataclasses import dataclass
from types import TracebackType
from typing import Any

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from statpipe.common.constants import USER_AGENT
from statpipe.common.errors import FormatError, SourceUnavailable

RETRYABLE_STATUS_CODES = {408, 425, 429, 500, 502, 503, 504}


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 10.0
    read: float = 60.0


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 3
    multiplier: float = 0.5
    max_wait: float = 10.0


class HttpRequestError(SourceUnavailable):
    error_code = "HTTP_ERROR"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RetryableHttpError(HttpRequestError):
    pass


class HttpClient:
    def __init__(
        self,
        *,
        timeout: TimeoutConfig | None = None,
        retry: RetryConfig | None = None,
    ) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.retry = retry or RetryConfig()
        self.session = requests.Session()

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _headers(self, accept: str) -> dict[str, str]:
        return {"User-Agent": USER_AGENT, "Accept": accept}

    def _raise_for_status_or_retry(self, response: requests.Response, url: str) -> None:
        status = response.status_code
        if status in RETRYABLE_STATUS_CODES:
            raise RetryableHttpError(f"Retryable HTTP status {status} from {url}", status_code=status)
        if status >= 400:
            raise HttpRequestError(f"HTTP status {status} from {url}", status_code=status)

    def _request(self, url: str, *, accept: str, timeout: TimeoutConfig | None) -> requests.Response:
        req_timeout = timeout or self.timeout
        try:
            response = self.session.request(
                method="GET",
                url=url,
                headers=self._headers(accept),
                timeout=(req_timeout.connect, req_timeout.read),
            )
        except requests.Timeout as exc:
            raise RetryableHttpError(f"Timed out fetching {url}") from exc
        except requests.RequestException as exc:
            raise SourceUnavailable(f"Network error fetching {url}: {exc}") from exc
        self._raise_for_status_or_retry(response, url)
        return response

    def _with_retry(self, func):
        wrapped = retry(
            stop=stop_after_attempt(self.retry.max_attempts),
            wait=wait_exponential_jitter(
                initial=self.retry.multiplier,
                max=self.retry.max_wait,
                jitter=0.5,
            ),
            retry=retry_if_exception_type(RetryableHttpError),
            reraise=True,
        )(func)
        return wrapped()

    def get_text(
        self,
        url: str,
        *,
        accept: str = "text/csv",
        timeout: TimeoutConfig | None = None,
    ) -> str:
        def _fetch() -> str:
            response = self._request(url, accept=accept, timeout=timeout)
            if response.encoding is None or response.encoding.lower() == "iso-8859-1":
                # NSI serves UTF-8 CSV without a charset parameter.
                response.encoding = "utf-8"
            return response.text.lstrip("\ufeff")

        return self._with_retry(_fetch)

    def get_json(self, url: str, *, timeout: TimeoutConfig | None = None) -> Any:
        def _fetch() -> Any:
            response = self._request(url, accept="application/json", timeout=timeout)
            try:
                return response.json()
            except ValueError as exc:
                raise FormatError(f"Invalid JSON payload from {url}") from exc

        return self._with_retry(_fetch)
