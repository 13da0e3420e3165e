"""Control loop: recovery, DNS reconciliation and the shared retry policy.

- RecoveryController: replaces an interrupted spot instance
- DnsReconciler: points the DNS record at the managed instance
- RetryManager: exponential backoff shared by both

Example:
    from stingy_vpn.engine import RecoveryController

    controller = RecoveryController(store, paths, compute, launch_template_id="lt-0123")
    result = controller.handle(signal)
"""

from stingy_vpn.engine.reconciler import DEFAULT_ADDRESS_RETRY, DEFAULT_DNS_RETRY, DnsReconciler
from stingy_vpn.engine.recovery import PollPolicy, RecoveryController
from stingy_vpn.engine.retry import RetryConfig, RetryManager

__all__ = [
    "DEFAULT_ADDRESS_RETRY",
    "DEFAULT_DNS_RETRY",
    "DnsReconciler",
    "PollPolicy",
    "RecoveryController",
    "RetryConfig",
    "RetryManager",
]
