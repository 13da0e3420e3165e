"""Error taxonomy for the recovery and DNS reconciliation handlers.

Ignorable conditions (stale, duplicate or foreign signals) are NOT
exceptions; controllers return an ``ignored`` result for those.

Everything raised from here is either retryable inside a bounded retry
policy or fatal. Fatal errors are logged and re-raised so the invocation
fails and EventBridge's bounded redelivery can take over.
"""

from typing import Any


class StingyVpnError(Exception):
    """Base class for all errors raised by stingy_vpn."""


# =============================================================================
# Fatal: configuration and input
# =============================================================================


class ConfigurationError(StingyVpnError):
    """Raised at cold start when required configuration is missing or invalid.

    Attributes:
        problems: One human-readable line per offending setting
    """

    def __init__(self, problems: list[str]) -> None:
        self.problems = problems
        super().__init__("Invalid configuration: " + "; ".join(problems))


class MalformedSignalError(StingyVpnError):
    """Raised when an event does not have the shape of the expected signal."""


class ParameterNotFoundError(StingyVpnError):
    """Raised when a state store key does not exist or holds no value."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Parameter not found: {name}")


# =============================================================================
# Compute platform
# =============================================================================


class ComputePlatformError(StingyVpnError):
    """An AWS API call against the compute platform failed.

    Wraps botocore errors so callers can classify them without importing
    botocore. Retryable during address lookup.
    """


class InstanceNotFoundError(ComputePlatformError):
    """DescribeInstances does not (yet) know the instance.

    Freshly launched instances can be invisible for a few seconds.
    """

    def __init__(self, instance_id: str) -> None:
        self.instance_id = instance_id
        super().__init__(f"Instance not found: {instance_id}")


class LaunchError(StingyVpnError):
    """RunInstances returned no instance or no instance id. Fatal."""


class InstanceTerminatedError(StingyVpnError):
    """The replacement instance entered a terminal state while starting. Fatal."""

    def __init__(self, instance_id: str, state: str) -> None:
        self.instance_id = instance_id
        self.state = state
        super().__init__(f"Instance {instance_id} entered terminal state: {state}")


class InstanceStartTimeoutError(StingyVpnError):
    """The replacement instance did not reach running within the poll budget. Fatal."""

    def __init__(self, instance_id: str, waited_seconds: float) -> None:
        self.instance_id = instance_id
        self.waited_seconds = waited_seconds
        super().__init__(f"Instance {instance_id} did not reach running state within {waited_seconds:g} seconds")


class AddressNotAssignedError(StingyVpnError):
    """The instance exists but has no public IP yet. Retryable."""

    def __init__(self, instance_id: str) -> None:
        self.instance_id = instance_id
        super().__init__(f"Instance {instance_id} does not have a public IP")


# =============================================================================
# DNS provider
# =============================================================================


class DnsUpdateError(StingyVpnError):
    """The DNS provider rejected a record update. Retryable.

    The message carries the provider's response body (or its ``errors``
    array) verbatim so it survives into the final raised error.

    Attributes:
        status_code: HTTP status of the response, None when no response arrived
        errors: Provider error payload, when the body was parseable
    """

    def __init__(self, message: str, *, status_code: int | None, errors: Any = None) -> None:
        self.status_code = status_code
        self.errors = errors
        super().__init__(message)
