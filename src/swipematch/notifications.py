"""Match-completed notifiers."""

from __future__ import annotations

import json
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any
from urllib import error, request

import structlog

from .schemas import Match


def build_match_payload(match: Match) -> dict[str, Any]:
    """Construct the event body delivered to notification consumers."""

    return {
        "event": "match.completed",
        "match_id": match.match_id,
        "company_id": match.company_id,
        "agent_id": match.agent_id,
        "status": match.status,
        "matched_at": match.matched_at.isoformat() if match.matched_at else None,
    }


class LoggingMatchNotifier:
    """Record completed matches in the structured log only."""

    def __init__(self) -> None:
        self._logger = structlog.get_logger(__name__)

    def match_completed(self, match: Match) -> None:
        self._logger.info("notification.match_completed", **build_match_payload(match))


class WebhookMatchNotifier:
    """POST completed matches as JSON to an HTTP endpoint.

    ``match_completed`` only queues the payload. A background executor performs
    the request and retries it up to ``max_attempts`` times with linear backoff,
    so a slow endpoint never delays the caller that completed the match.
    """

    def __init__(
        self,
        endpoint: str,
        api_key: str | None = None,
        *,
        timeout: float = 5.0,
        max_attempts: int = 3,
        backoff_seconds: float = 1.0,
        executor: Executor | None = None,
    ):
        self._endpoint = endpoint
        self._api_key = api_key
        self._timeout = timeout
        self._max_attempts = max(max_attempts, 1)
        self._backoff_seconds = backoff_seconds
        self._executor = executor or ThreadPoolExecutor(
            max_workers=2, thread_name_prefix="match-webhook"
        )
        self._logger = structlog.get_logger(__name__)

    def match_completed(self, match: Match) -> None:
        self._executor.submit(self.deliver, build_match_payload(match))

    def deliver(self, payload: dict[str, Any]) -> bool:
        """Send ``payload`` with retries; True once the endpoint accepted it."""
        for attempt in range(1, self._max_attempts + 1):
            if self.send(payload):
                return True
            if attempt < self._max_attempts:
                time.sleep(self._backoff_seconds * attempt)
        self._logger.warning(
            "notification.gave_up",
            match_id=payload.get("match_id"),
            attempts=self._max_attempts,
        )
        return False

    def send(self, payload: dict[str, Any]) -> bool:
        data = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        req = request.Request(self._endpoint, data=data, headers=headers, method="POST")
        try:
            with request.urlopen(req, timeout=self._timeout) as resp:
                self._logger.info(
                    "notification.delivered",
                    match_id=payload.get("match_id"),
                    status_code=resp.status,
                )
                return True
        except (error.URLError, TimeoutError) as exc:
            self._logger.warning(
                "notification.request_failed",
                match_id=payload.get("match_id"),
                error=str(exc),
            )
            return False

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting matches; with ``wait`` pending deliveries finish first."""
        self._executor.shutdown(wait=wait)


def build_notifier(
    webhook_url: str | None = None,
    timeout: float | None = None,
    max_attempts: int | None = None,
    backoff_seconds: float | None = None,
):
    """Return a webhook notifier when a URL is configured, else the logging one."""
    if webhook_url:
        return WebhookMatchNotifier(
            webhook_url,
            timeout=timeout or 5.0,
            max_attempts=max_attempts or 3,
            backoff_seconds=1.0 if backoff_seconds is None else backoff_seconds,
        )
    return LoggingMatchNotifier()
