"""Retrying a call with exponential backoff and jitter."""

from __future__ import annotations

import random
import time
from dataclasses import dataclass, replace
from typing import Any, Callable


@dataclass
class RetryConfig:
    """Retry settings; delays are in seconds."""

    attempts: int = 5
    delay: float = 1.0
    max_delay: float = 10.0
    max_jitter: float = 1.1
    on_retry: Callable[[int, BaseException], Any] | None = None
    retry_if: Callable[[BaseException], bool] | None = None
    expose_delay: Callable[[int, BaseException], float] | None = None


STANDARD_CONFIG = RetryConfig()


class Retry:
    """Calls a function until it succeeds or the retry budget runs out."""

    def __init__(self, config: RetryConfig | None = None) -> None:
        self.config = replace(config if config is not None else STANDARD_CONFIG)

    def do(self, fn: Callable[[], Any]) -> Any:
        """Call ``fn``, retrying on errors; re-raise the last error on give-up."""
        try:
            return fn()
        except Exception as exc:
            error = exc
        cfg = self.config
        if not self._should_retry(error):
            raise error

        attempt = 0
        while attempt < cfg.attempts and cfg.delay < cfg.max_delay:
            attempt += 1
            time.sleep(cfg.delay)
            next_delay = cfg.expose_delay or self._expose_delay
            cfg.delay = next_delay(attempt, error)
            try:
                return fn()
            except Exception as exc:
                error = exc
            if not self._should_retry(error):
                raise error
        raise error

    def _should_retry(self, error: BaseException) -> bool:
        predicate = self.config.retry_if
        return predicate is None or predicate(error)

    def _expose_delay(self, n: int, error: BaseException | None) -> float:
        cfg = self.config
        if error is None:
            return cfg.delay
        backoff = min(cfg.delay * (1 << (n - 1)), cfg.max_delay)
        jitter = random.random() * cfg.max_jitter
        return backoff * (1 + jitter)

    def with_attempts(self, n: int) -> Retry:
        self.config.attempts = n
        return self

    def with_delay(self, delay: float) -> Retry:
        self.config.delay = delay
        return self

    def with_max_delay(self, delay: float) -> Retry:
        self.config.max_delay = delay
        return self

    def with_max_jitter(self, jitter: float) -> Retry:
        self.config.max_jitter = jitter
        return self

    def with_on_retry(self, on_retry: Callable[[int, BaseException], Any]) -> Retry:
        self.config.on_retry = on_retry
        return self

    def with_retry_if(self, predicate: Callable[[BaseException], bool]) -> Retry:
        self.config.retry_if = predicate
        return self

    def with_delay_type(self, delay_fn: Callable[[int, BaseException], float]) -> Retry:
        self.config.expose_delay = delay_fn
        return self