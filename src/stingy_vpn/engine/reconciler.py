# src/stingy_vpn/engine/reconciler.py
"""DnsReconciler: points the DNS record at the managed instance.

Flow for one ReadinessSignal:

1. Only the transition into ``running`` is actionable.
2. Only the instance named by the Authoritative Resource Reference is ours.
3. Resolve the live public IP from EC2 (address retry policy).
4. Read the DNS provider token from the state store.
5. PATCH the record content (DNS retry policy).

The public IP always comes from EC2, never from the current DNS record.
"""

from collections.abc import Callable

import structlog

from stingy_vpn.contracts.compute import ComputePlatform
from stingy_vpn.contracts.dns import DnsProvider, DnsRecord
from stingy_vpn.contracts.enums import SignalDisposition
from stingy_vpn.contracts.errors import AddressNotAssignedError, ComputePlatformError, DnsUpdateError
from stingy_vpn.contracts.events import ReadinessSignal
from stingy_vpn.contracts.results import ReconcileResult
from stingy_vpn.contracts.state_store import StateStore
from stingy_vpn.core.reference import InstanceReference, ParameterPaths
from stingy_vpn.engine.retry import RetryConfig, RetryManager

logger = structlog.get_logger(__name__)

DEFAULT_ADDRESS_RETRY = RetryConfig(max_attempts=5, base_delay=2.0)
DEFAULT_DNS_RETRY = RetryConfig(max_attempts=3, base_delay=1.0)


def _is_address_retryable(error: BaseException) -> bool:
    # InstanceNotFoundError is a ComputePlatformError
    return isinstance(error, (AddressNotAssignedError, ComputePlatformError))


def _is_dns_retryable(error: BaseException) -> bool:
    return isinstance(error, DnsUpdateError)


class DnsReconciler:
    """Handles EC2 state-change signals for the managed instance.

    Example:
        reconciler = DnsReconciler(
            store=ParameterStoreClient(),
            paths=ParameterPaths("/stingy-vpn/prod"),
            compute=EC2ComputeClient(),
            dns=CloudflareDnsClient(zone_id, record_id),
        )
        result = reconciler.handle(ReadinessSignal.from_event(event))
    """

    def __init__(
        self,
        store: StateStore,
        paths: ParameterPaths,
        compute: ComputePlatform,
        dns: DnsProvider,
        *,
        address_retry: RetryManager | None = None,
        dns_retry: RetryManager | None = None,
    ) -> None:
        """Initialize reconciler.

        Args:
            store: Shared state store (instance reference and DNS token)
            paths: Parameter keys for this deployment
            compute: Platform used to resolve the public IP
            dns: Provider holding the record
            address_retry: Policy for the public IP lookup (default: 5 attempts, 2 s base)
            dns_retry: Policy for the record update (default: 3 attempts, 1 s base)
        """
        self._store = store
        self._paths = paths
        self._reference = InstanceReference(store, paths)
        self._compute = compute
        self._dns = dns
        self._address_retry = address_retry if address_retry is not None else RetryManager(DEFAULT_ADDRESS_RETRY)
        self._dns_retry = dns_retry if dns_retry is not None else RetryManager(DEFAULT_DNS_RETRY)

    def handle(self, signal: ReadinessSignal) -> ReconcileResult:
        """Reconcile DNS for one state-change signal.

        Returns:
            ``ignored`` result for non-running states and unmanaged
            instances, otherwise a ``completed`` result with the published
            address

        Raises:
            AddressNotAssignedError: No public IP within the address retry budget
            ComputePlatformError: DescribeInstances kept failing for the whole budget
            DnsUpdateError: The DNS retry budget ran out; carries the provider payload
            ParameterNotFoundError: The reference or token parameter is missing
        """
        log = logger.bind(instance_id=signal.instance_id, state=signal.state)
        log.info("Instance state change received")

        if not signal.is_running:
            log.info("Ignoring non-running state")
            return ReconcileResult.ignored(signal.instance_id, signal.state)

        try:
            managed_instance_id = self._reference.current()
            if managed_instance_id != signal.instance_id:
                log.info("Ignoring unmanaged instance", managed_instance_id=managed_instance_id)
                return ReconcileResult.ignored(signal.instance_id, signal.state)

            public_ip = self.resolve_public_ip(signal.instance_id)
            record = self.publish(public_ip)
        except Exception as e:
            log.exception("DDNS update failed", error=str(e))
            raise

        log.info("DDNS update completed", public_ip=public_ip, record_name=record.name)
        return ReconcileResult(
            disposition=SignalDisposition.COMPLETED,
            instance_id=signal.instance_id,
            state=signal.state,
            public_ip=public_ip,
            record_name=record.name,
        )

    def resolve_public_ip(self, instance_id: str) -> str:
        """Look up the instance's public IP, retrying until one is assigned."""

        def lookup() -> str:
            description = self._compute.describe(instance_id)
            if not description.public_ip:
                raise AddressNotAssignedError(instance_id)
            logger.info("Retrieved instance public IP", instance_id=instance_id, public_ip=description.public_ip)
            return description.public_ip

        return self._address_retry.execute_with_retry(
            lookup,
            is_retryable=_is_address_retryable,
            on_retry=self._log_attempt("public_ip_lookup", self._address_retry),
        )

    def publish(self, public_ip: str) -> DnsRecord:
        """Point the DNS record at ``public_ip``."""
        api_token = self._store.get(self._paths.cloudflare_token, decrypt=True)
        return self._dns_retry.execute_with_retry(
            lambda: self._dns.update_record_content(api_token, public_ip),
            is_retryable=_is_dns_retryable,
            on_retry=self._log_attempt("dns_record_update", self._dns_retry),
        )

    @staticmethod
    def _log_attempt(operation: str, manager: RetryManager) -> Callable[[int, BaseException], None]:
        config = manager.config

        def on_retry(attempt: int, error: BaseException) -> None:
            # None on the final attempt: no wait follows it
            retry_in = config.delay_before(attempt + 1) if attempt < config.max_attempts else None
            logger.warning(
                f"Operation failed, attempt {attempt}/{config.max_attempts}",
                operation=operation,
                error=str(error),
                retry_in_seconds=retry_in,
            )

        return on_retry
