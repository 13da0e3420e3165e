# src/stingy_vpn/engine/retry.py
"""Exponential backoff shared by the address lookup and the DNS update.

Both call sites use the same shape, only the budget differs:

    attempt 1 -> wait base -> attempt 2 -> wait base*2 -> attempt 3 ...

A wait is capped at ``max_delay`` and may carry up to ``jitter`` seconds of
uniform noise (off by default). There is no wait after the final attempt.
The attempt loop itself is tenacity's; this module only translates our
policy into tenacity's stop/wait/retry strategies. When the budget runs
out the last error is raised as-is, with a note giving the attempt count.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, NoReturn, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    after_nothing,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

if TYPE_CHECKING:
    from stingy_vpn.core.config import RetrySettings

T = TypeVar("T")

RetryCallback = Callable[[int, BaseException], None]


@dataclass(frozen=True, slots=True)
class RetryConfig:
    """Budget and backoff curve for one kind of operation.

    ``max_attempts`` counts every call, the first one included.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    jitter: float = 0.0
    exponential_base: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")
        if self.jitter < 0:
            raise ValueError("jitter must be >= 0")

    @classmethod
    def no_retry(cls) -> "RetryConfig":
        return cls(max_attempts=1)

    @classmethod
    def from_settings(cls, settings: "RetrySettings") -> "RetryConfig":
        return cls(
            max_attempts=settings.max_attempts,
            base_delay=settings.initial_delay_seconds,
            max_delay=settings.max_delay_seconds,
            jitter=settings.jitter_seconds,
            exponential_base=settings.exponential_base,
        )

    def delay_before(self, attempt: int) -> float:
        """Nominal (jitter-free) wait before ``attempt``, counted from 1."""
        if attempt <= 1:
            return 0.0
        return min(self.base_delay * self.exponential_base ** (attempt - 2), self.max_delay)


class RetryManager:
    """Runs callables under a RetryConfig.

    Example:
        manager = RetryManager(RetryConfig(max_attempts=5, base_delay=2.0))
        ip = manager.execute_with_retry(
            lambda: lookup_public_ip(instance_id),
            is_retryable=lambda e: isinstance(e, AddressNotAssignedError),
        )
    """

    def __init__(self, config: RetryConfig, *, sleep: Callable[[float], None] = time.sleep) -> None:
        """
        Args:
            config: Budget and backoff curve
            sleep: Called with each wait in seconds; tests pass a recorder
        """
        self._config = config
        self._sleep = sleep

    @property
    def config(self) -> RetryConfig:
        return self._config

    def execute_with_retry(
        self,
        operation: Callable[[], T],
        *,
        is_retryable: Callable[[BaseException], bool],
        on_retry: RetryCallback | None = None,
    ) -> T:
        """Call ``operation`` until it succeeds or the budget is spent.

        Args:
            operation: Zero-argument callable to run
            is_retryable: Decides whether a raised error is worth another attempt
            on_retry: Called as ``on_retry(attempt, error)`` after every
                retryable failure, the final one included

        Raises:
            Exception: The last error once every attempt failed with a
                retryable one, or the first non-retryable error. Either is
                the original object, not a wrapper.
        """
        retrying = Retrying(
            stop=stop_after_attempt(self._config.max_attempts),
            wait=wait_exponential_jitter(
                initial=self._config.base_delay,
                max=self._config.max_delay,
                exp_base=self._config.exponential_base,
                jitter=self._config.jitter,
            ),
            retry=retry_if_exception(is_retryable),
            after=_notify(on_retry) if on_retry is not None else after_nothing,
            retry_error_callback=_give_up,
            sleep=self._sleep,
        )
        return retrying(operation)


def _notify(on_retry: RetryCallback) -> Callable[[RetryCallState], None]:
    """Adapt a (attempt, error) callback to tenacity's ``after`` hook.

    tenacity runs ``after`` for each attempt it classified as retryable,
    before consulting the stop condition.
    """

    def after(retry_state: RetryCallState) -> None:
        if retry_state.outcome is None:
            return
        error = retry_state.outcome.exception()
        if error is not None:
            on_retry(retry_state.attempt_number, error)

    return after


def _give_up(retry_state: RetryCallState) -> NoReturn:
    """Re-raise the final attempt's error once the stop condition is met."""
    assert retry_state.outcome is not None, "tenacity gave up before any attempt finished"
    error = retry_state.outcome.exception()
    assert error is not None, "tenacity gave up on an attempt that did not fail"
    error.add_note(f"Gave up after {retry_state.attempt_number} attempts")
    raise error
