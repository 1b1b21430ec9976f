"""HTTP client with retry/backoff."""
from __future__ import annotations

import json
import logging
import random
import time
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = (429, 500, 502, 503, 504)


class UpstreamError(RuntimeError):
    """A remote call failed; carries what was attempted and the remote status."""

    def __init__(self, operation: str, message: str, status: Optional[int] = None) -> None:
        self.operation = operation
        self.status = status
        detail = f"{operation} failed"
        if status is not None:
            detail += f" (HTTP {status})"
        super().__init__(f"{detail}: {message}")


class HttpClient:
    def __init__(
        self,
        api_key: str,
        timeout: int = 20,
        retry_max: int = 5,
        backoff_base: float = 0.5,
        backoff_max: float = 8.0,
    ) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self.retry_max = retry_max
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.session = requests.Session()

    def post_json(
        self,
        url: str,
        body: Dict[str, Any],
        field_mask: str,
        extra_headers: Optional[Dict[str, str]] = None,
        operation: Optional[str] = None,
    ) -> Dict[str, Any]:
        headers = {
            "X-Goog-Api-Key": self.api_key,
            "X-Goog-FieldMask": field_mask,
            "Content-Type": "application/json",
        }
        if extra_headers:
            headers.update(extra_headers)

        payload = json.dumps(body)
        operation = operation or f"POST {url}"
        resp = self._request("POST", url, operation, data=payload, headers=headers)
        try:
            return resp.json()
        except ValueError as exc:
            logger.error("Non-JSON response from %s", url)
            raise UpstreamError(operation, "response was not JSON", resp.status_code) from exc

    def get_text(self, url: str, operation: Optional[str] = None) -> str:
        resp = self._request("GET", url, operation or f"GET {url}")
        # requests assumes ISO-8859-1 for text/* without a charset
        return resp.content.decode("utf-8-sig", errors="replace")

    def _request(self, method: str, url: str, operation: str, **kwargs: Any) -> requests.Response:
        for attempt in range(1, self.retry_max + 1):
            try:
                if method == "POST":
                    resp = self.session.post(url, timeout=self.timeout, **kwargs)
                else:
                    resp = self.session.get(url, timeout=self.timeout, **kwargs)
            except requests.RequestException as exc:
                if attempt >= self.retry_max:
                    raise UpstreamError(operation, str(exc)) from exc
                self._sleep_backoff(attempt)
                continue

            status = resp.status_code
            if status == 200:
                return resp

            if status in RETRYABLE_STATUSES:
                logger.warning("HTTP %s from %s (attempt %s)", status, url, attempt)
                if attempt >= self.retry_max:
                    raise UpstreamError(operation, _error_message(resp), status)
                if not self._sleep_retry_after(resp):
                    self._sleep_backoff(attempt)
                continue

            # Non-retryable
            logger.error("HTTP %s from %s", status, url)
            raise UpstreamError(operation, _error_message(resp), status)

        raise RuntimeError("Unexpected HTTP retry loop exit")

    def _sleep_backoff(self, attempt: int) -> None:
        base = min(self.backoff_base * (2 ** (attempt - 1)), self.backoff_max)
        jitter = random.uniform(0, self.backoff_base)
        time.sleep(base + jitter)

    def _sleep_retry_after(self, resp: requests.Response) -> bool:
        retry_after = resp.headers.get("Retry-After")
        if not retry_after:
            return False
        try:
            delay = float(retry_after)
        except ValueError:
            return False
        delay = max(0.0, min(delay, self.backoff_max))
        time.sleep(delay)
        return True


def _error_message(resp: requests.Response) -> str:
    """Prefer the Google API error message, fall back to the reason phrase."""
    try:
        payload = resp.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return getattr(resp, "reason", None) or "request failed"
