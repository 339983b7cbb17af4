"""
AdPiler REST client with bounded retry.

Endpoints used:
  POST /campaigns/{id}/ads          → display ad (multipart)
  POST /campaigns/{id}/social-ads   → post / carousel entity (multipart)
  POST /social-ads/{id}/slides      → one slide of a social ad (multipart)
  GET  /campaigns/{id}              → campaign detail (preview code)

Retry rules:
  - 5xx and transport errors (connect, read, timeout) are retried
  - 4xx is raised at once with status and body
  - any other httpx error (decoding, too many redirects) is raised at once
  - delay before attempt k (k ≥ 2) = base · 2^(k-2) + uniform(0, jitter)
  - after the last attempt the last error is raised
"""

from __future__ import annotations

import logging
import random
import time
from typing import Any, Callable, Optional

import httpx

from adpiler_sync.publish.models import RetryPolicy

logger = logging.getLogger(__name__)

_TIMEOUT = 60.0  # seconds; uploads can be large


class AdPilerError(Exception):
    """Raised when an AdPiler call fails for good."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        fatal: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.fatal = fatal

    @property
    def retryable(self) -> bool:
        if self.fatal:
            return False
        return self.status_code is None or self.status_code >= 500


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


class AdPilerClient:
    """
    Thin bearer-authenticated wrapper around the AdPiler API.

    Usage::

        client = AdPilerClient("https://platform.adpiler.com/api", "KEY")
        body = client.post_multipart(
            "/campaigns/42/ads",
            {"name": "Spring", "width": 300, "height": 600},
            files={"file": ("ad.gif", data, "image/gif")},
        )
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        policy: Optional[RetryPolicy] = None,
        timeout: float = _TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: Optional[random.Random] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._log = log or logger
        self._http = httpx.Client(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def post_multipart(
        self,
        path: str,
        data: dict[str, Any],
        files: Optional[dict[str, tuple[str, bytes, str]]] = None,
    ) -> Any:
        """POST a multipart form; ``None`` values are left out of the form."""
        # (None, value) parts keep the body multipart even without a file
        parts: list[tuple[str, Any]] = [
            (key, (None, _form_value(value))) for key, value in data.items() if value is not None
        ]
        parts.extend((files or {}).items())
        return self._request("POST", path, files=parts)

    def get_json(self, path: str, params: Optional[dict] = None) -> Any:
        return self._request("GET", path, params=params)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _backoff(self, attempt: int) -> float:
        """Seconds to wait before *attempt*."""
        jitter = self._rng.uniform(0, self.policy.jitter_ms) if self.policy.jitter_ms else 0.0
        return (self.policy.min_delay_ms(attempt) + jitter) / 1000

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        last_error: Optional[AdPilerError] = None

        for attempt in range(1, self.policy.max_attempts + 1):
            if attempt > 1:
                delay = self._backoff(attempt)
                self._log.warning(
                    "%s %s failed (%s); retry %d/%d in %.2fs",
                    method,
                    path,
                    last_error,
                    attempt,
                    self.policy.max_attempts,
                    delay,
                )
                self._sleep(delay)

            try:
                resp = self._http.request(method, path, **kwargs)
            except httpx.TransportError as exc:
                last_error = AdPilerError(f"{method} {path} transport error: {exc}")
                continue
            except httpx.HTTPError as exc:
                # decoding errors, redirect loops: the same request would fail again
                raise AdPilerError(f"{method} {path} failed: {exc}", fatal=True) from exc

            if resp.status_code >= 400:
                error = AdPilerError(
                    f"{method} {path} returned {resp.status_code}: {resp.text[:500]}",
                    status_code=resp.status_code,
                    body=resp.text,
                )
                if not error.retryable:
                    raise error
                last_error = error
                continue

            self._log.debug("%s %s → %d", method, path, resp.status_code)
            return self._parse(resp)

        assert last_error is not None
        self._log.error("%s %s gave up after %d attempt(s)", method, path, self.policy.max_attempts)
        raise last_error

    @staticmethod
    def _parse(resp: httpx.Response) -> Any:
        """Decode JSON; anything else comes back as ``{"raw": text}``."""
        try:
            return resp.json()
        except ValueError:
            return {"raw": resp.text}

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "AdPilerClient":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
