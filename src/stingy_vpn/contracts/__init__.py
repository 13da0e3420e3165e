"""Shared contracts for cross-boundary data types.

This package is a LEAF MODULE with no outbound dependencies to core, engine
or clients. Settings classes live in stingy_vpn.core.config.

Import patterns:
    from stingy_vpn.contracts import InterruptionSignal, StateStore
    from stingy_vpn.core.config import DdnsSettings
"""

from stingy_vpn.contracts.compute import ComputePlatform, InstanceDescription
from stingy_vpn.contracts.dns import DnsProvider, DnsRecord
from stingy_vpn.contracts.enums import TERMINAL_STATES, InstanceState, SignalDisposition
from stingy_vpn.contracts.errors import (
    AddressNotAssignedError,
    ComputePlatformError,
    ConfigurationError,
    DnsUpdateError,
    InstanceNotFoundError,
    InstanceStartTimeoutError,
    InstanceTerminatedError,
    LaunchError,
    MalformedSignalError,
    ParameterNotFoundError,
    StingyVpnError,
)
from stingy_vpn.contracts.events import (
    SPOT_INTERRUPTION_DETAIL_TYPE,
    STATE_CHANGE_DETAIL_TYPE,
    InterruptionSignal,
    ReadinessSignal,
)
from stingy_vpn.contracts.results import ReconcileResult, RecoveryResult
from stingy_vpn.contracts.state_store import StateStore

__all__ = [
    "SPOT_INTERRUPTION_DETAIL_TYPE",
    "STATE_CHANGE_DETAIL_TYPE",
    "TERMINAL_STATES",
    "AddressNotAssignedError",
    "ComputePlatform",
    "ComputePlatformError",
    "ConfigurationError",
    "DnsProvider",
    "DnsRecord",
    "DnsUpdateError",
    "InstanceDescription",
    "InstanceNotFoundError",
    "InstanceStartTimeoutError",
    "InstanceState",
    "InstanceTerminatedError",
    "InterruptionSignal",
    "LaunchError",
    "MalformedSignalError",
    "ParameterNotFoundError",
    "ReadinessSignal",
    "ReconcileResult",
    "RecoveryResult",
    "SignalDisposition",
    "StateStore",
    "StingyVpnError",
]
