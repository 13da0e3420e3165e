# tests/engine/test_retry.py
"""Tests for RetryManager and RetryConfig."""

from unittest.mock import Mock

import pytest

from stingy_vpn.contracts import AddressNotAssignedError, DnsUpdateError, ParameterNotFoundError
from stingy_vpn.core.config import RetrySettings
from stingy_vpn.engine.retry import RetryConfig, RetryManager
from tests.fixtures import SleepRecorder


def _no_address() -> None:
    raise AddressNotAssignedError("i-1")


def _is_address_error(error: BaseException) -> bool:
    return isinstance(error, AddressNotAssignedError)


def _exhaust(config: RetryConfig) -> SleepRecorder:
    """Run an always-failing operation to exhaustion and return the recorded waits."""
    sleep = SleepRecorder()
    with pytest.raises(AddressNotAssignedError):
        RetryManager(config, sleep=sleep).execute_with_retry(_no_address, is_retryable=_is_address_error)
    return sleep


class TestRetryManager:
    """Attempt loop behaviour."""

    def test_success_is_not_retried(self) -> None:
        sleep = SleepRecorder()
        operation = Mock(return_value="203.0.113.7")

        result = RetryManager(RetryConfig(), sleep=sleep).execute_with_retry(operation, is_retryable=_is_address_error)

        assert result == "203.0.113.7"
        operation.assert_called_once_with()
        assert sleep.calls == []

    def test_retryable_error_then_success(self) -> None:
        operation = Mock(side_effect=[AddressNotAssignedError("i-1"), AddressNotAssignedError("i-1"), "203.0.113.7"])

        result = RetryManager(RetryConfig(), sleep=SleepRecorder()).execute_with_retry(operation, is_retryable=_is_address_error)

        assert result == "203.0.113.7"
        assert operation.call_count == 3

    def test_non_retryable_error_propagates_unchanged(self) -> None:
        error = ParameterNotFoundError("/stingy-vpn/test/cloudflare-token")
        operation = Mock(side_effect=error)

        with pytest.raises(ParameterNotFoundError) as exc_info:
            RetryManager(RetryConfig(), sleep=SleepRecorder()).execute_with_retry(operation, is_retryable=_is_address_error)

        assert exc_info.value is error
        assert operation.call_count == 1

    def test_exhaustion_raises_last_error_itself(self) -> None:
        errors = [
            DnsUpdateError("Cloudflare API error: 502 - Bad Gateway", status_code=502),
            DnsUpdateError('Cloudflare API failed: [{"code": 10000}]', status_code=200),
        ]
        manager = RetryManager(RetryConfig(max_attempts=2), sleep=SleepRecorder())

        with pytest.raises(DnsUpdateError) as exc_info:
            manager.execute_with_retry(Mock(side_effect=errors), is_retryable=lambda e: isinstance(e, DnsUpdateError))

        assert exc_info.value is errors[1]
        assert exc_info.value.status_code == 200
        assert exc_info.value.__notes__ == ["Gave up after 2 attempts"]
        assert str(exc_info.value) == 'Cloudflare API failed: [{"code": 10000}]'

    def test_exhaustion_keeps_original_cause(self) -> None:
        root = ConnectionError("connection reset")
        error = DnsUpdateError("Cloudflare API request failed: connection reset")
        error.__cause__ = root

        with pytest.raises(DnsUpdateError) as exc_info:
            RetryManager(RetryConfig.no_retry(), sleep=SleepRecorder()).execute_with_retry(
                Mock(side_effect=error), is_retryable=lambda e: isinstance(e, DnsUpdateError)
            )

        assert exc_info.value.__cause__ is root

    def test_exhausted_error_is_caught_by_its_own_type(self) -> None:
        manager = RetryManager(RetryConfig(max_attempts=3), sleep=SleepRecorder())

        try:
            manager.execute_with_retry(_no_address, is_retryable=_is_address_error)
        except AddressNotAssignedError as e:
            caught: AddressNotAssignedError | None = e
        else:
            caught = None

        assert caught is not None
        assert caught.instance_id == "i-1"
        assert caught.__notes__ == ["Gave up after 3 attempts"]

    def test_dns_budget_waits_one_then_two_seconds(self) -> None:
        assert _exhaust(RetryConfig(max_attempts=3, base_delay=1.0)).calls == pytest.approx([1.0, 2.0])

    def test_address_budget_waits_thirty_seconds_in_total(self) -> None:
        sleep = _exhaust(RetryConfig(max_attempts=5, base_delay=2.0))

        assert sleep.calls == pytest.approx([2.0, 4.0, 8.0, 16.0])
        assert sleep.total == pytest.approx(30.0)

    def test_backoff_is_capped_at_max_delay(self) -> None:
        sleep = _exhaust(RetryConfig(max_attempts=4, base_delay=10.0, max_delay=15.0))

        assert sleep.calls == pytest.approx([10.0, 15.0, 15.0])

    def test_custom_exponential_base(self) -> None:
        sleep = _exhaust(RetryConfig(max_attempts=3, base_delay=1.0, exponential_base=3.0))

        assert sleep.calls == pytest.approx([1.0, 3.0])

    def test_jitter_stays_within_bound(self) -> None:
        sleep = _exhaust(RetryConfig(max_attempts=3, base_delay=1.0, jitter=0.5))

        assert 1.0 <= sleep.calls[0] <= 1.5
        assert 2.0 <= sleep.calls[1] <= 2.5

    def test_single_attempt_config_never_sleeps(self) -> None:
        assert _exhaust(RetryConfig.no_retry()).calls == []

    def test_on_retry_sees_every_retryable_failure(self) -> None:
        seen: list[tuple[int, str]] = []
        manager = RetryManager(RetryConfig(max_attempts=3), sleep=SleepRecorder())

        with pytest.raises(AddressNotAssignedError):
            manager.execute_with_retry(
                _no_address,
                is_retryable=_is_address_error,
                on_retry=lambda attempt, error: seen.append((attempt, type(error).__name__)),
            )

        assert seen == [(1, "AddressNotAssignedError"), (2, "AddressNotAssignedError"), (3, "AddressNotAssignedError")]

    def test_on_retry_skips_non_retryable_failure(self) -> None:
        on_retry = Mock()

        with pytest.raises(ParameterNotFoundError):
            RetryManager(RetryConfig(), sleep=SleepRecorder()).execute_with_retry(
                Mock(side_effect=ParameterNotFoundError("/p/instance-id")),
                is_retryable=_is_address_error,
                on_retry=on_retry,
            )

        on_retry.assert_not_called()

    def test_on_retry_not_called_after_success(self) -> None:
        on_retry = Mock()
        operation = Mock(side_effect=[AddressNotAssignedError("i-1"), "203.0.113.7"])

        RetryManager(RetryConfig(), sleep=SleepRecorder()).execute_with_retry(
            operation,
            is_retryable=_is_address_error,
            on_retry=on_retry,
        )

        assert on_retry.call_count == 1
        assert on_retry.call_args.args[0] == 1


class TestRetryConfig:
    """RetryConfig validation and factories."""

    def test_rejects_zero_attempts(self) -> None:
        with pytest.raises(ValueError, match="max_attempts must be >= 1"):
            RetryConfig(max_attempts=0)

    def test_rejects_negative_base_delay(self) -> None:
        with pytest.raises(ValueError, match="base_delay must be >= 0"):
            RetryConfig(base_delay=-0.1)

    def test_rejects_negative_jitter(self) -> None:
        with pytest.raises(ValueError, match="jitter must be >= 0"):
            RetryConfig(jitter=-1.0)

    def test_from_settings_maps_fields(self) -> None:
        settings = RetrySettings(max_attempts=5, initial_delay_seconds=2.0, max_delay_seconds=30.0, jitter_seconds=0.25)

        config = RetryConfig.from_settings(settings)

        assert config == RetryConfig(max_attempts=5, base_delay=2.0, max_delay=30.0, jitter=0.25, exponential_base=2.0)

    def test_delay_before_matches_schedule(self) -> None:
        config = RetryConfig(max_attempts=5, base_delay=2.0)

        assert [config.delay_before(n) for n in range(1, 6)] == [0.0, 2.0, 4.0, 8.0, 16.0]

    def test_manager_exposes_config(self) -> None:
        config = RetryConfig(max_attempts=7)

        assert RetryManager(config).config is config
