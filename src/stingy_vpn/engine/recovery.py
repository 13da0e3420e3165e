# src/stingy_vpn/engine/recovery.py
"""RecoveryController: replaces an interrupted spot instance.

Flow for one InterruptionSignal:

1. Read the Authoritative Resource Reference.
2. Applicability: act only if the reference names the interrupted instance,
   or still holds the bootstrap sentinel. Anything else is a stale,
   duplicate or foreign signal and is ignored successfully.
3. Launch exactly one replacement from the launch template.
4. Write the new id to the reference BEFORE waiting. If the invocation dies
   after this point, redelivered signals for the old id are discarded by
   step 2 instead of launching a second replacement.
5. Poll until the replacement is running.

The controller never talks to DNS. EC2 emits a state-change notification
when the replacement reaches running, and that is what drives the
DnsReconciler.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from stingy_vpn.contracts.compute import ComputePlatform
from stingy_vpn.contracts.enums import TERMINAL_STATES, InstanceState, SignalDisposition
from stingy_vpn.contracts.errors import (
    InstanceNotFoundError,
    InstanceStartTimeoutError,
    InstanceTerminatedError,
)
from stingy_vpn.contracts.events import InterruptionSignal
from stingy_vpn.contracts.results import RecoveryResult
from stingy_vpn.contracts.state_store import StateStore
from stingy_vpn.core.reference import InstanceReference, ParameterPaths

if TYPE_CHECKING:
    from stingy_vpn.core.config import PollSettings

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class PollPolicy:
    """Fixed-interval readiness polling.

    The controller checks at most ``max_attempts`` times and sleeps
    ``interval_seconds`` between checks (not after the last one).
    """

    interval_seconds: float = 10.0
    max_attempts: int = 30

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.interval_seconds < 0:
            raise ValueError("interval_seconds must be >= 0")

    @property
    def budget_seconds(self) -> float:
        return self.interval_seconds * self.max_attempts

    @classmethod
    def from_settings(cls, settings: "PollSettings") -> "PollPolicy":
        return cls(interval_seconds=settings.interval_seconds, max_attempts=settings.max_attempts)


class RecoveryController:
    """Handles spot interruption signals for the managed instance.

    Example:
        controller = RecoveryController(
            store=ParameterStoreClient(),
            paths=ParameterPaths("/stingy-vpn/prod"),
            compute=EC2ComputeClient(),
            launch_template_id="lt-0123",
        )
        result = controller.handle(InterruptionSignal.from_event(event))
    """

    def __init__(
        self,
        store: StateStore,
        paths: ParameterPaths,
        compute: ComputePlatform,
        *,
        launch_template_id: str,
        poll: PollPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize controller.

        Args:
            store: Shared state store holding the instance reference
            paths: Parameter keys for this deployment
            compute: Platform used to launch and describe instances
            launch_template_id: Template for replacement instances
            poll: Readiness polling policy (default: 30 checks, 10 s apart)
            sleep: Function used to wait between checks
        """
        self._reference = InstanceReference(store, paths)
        self._compute = compute
        self._launch_template_id = launch_template_id
        self._poll = poll if poll is not None else PollPolicy()
        self._sleep = sleep

    def handle(self, signal: InterruptionSignal) -> RecoveryResult:
        """Recover from one interruption signal.

        Returns:
            ``ignored`` result for stale/duplicate/foreign signals, otherwise
            a ``completed`` result naming the replacement instance

        Raises:
            LaunchError: RunInstances produced no usable instance
            InstanceTerminatedError: Replacement died while starting
            InstanceStartTimeoutError: Replacement never reached running
            ParameterNotFoundError: The reference parameter does not exist
            ComputePlatformError: An EC2 call failed
        """
        log = logger.bind(interrupted_instance_id=signal.instance_id)
        log.info("Spot interruption received", action=signal.action)

        try:
            managed_instance_id = self._reference.current()

            if managed_instance_id != signal.instance_id and not InstanceReference.is_sentinel(managed_instance_id):
                log.info(
                    "Ignoring interruption for unmanaged instance",
                    managed_instance_id=managed_instance_id,
                )
                return RecoveryResult.ignored(signal.instance_id, managed_instance_id)

            new_instance_id = self._compute.launch_from_template(self._launch_template_id)
            self._reference.designate(new_instance_id)
            self.wait_until_running(new_instance_id)
        except Exception as e:
            log.exception("Recovery failed", error=str(e))
            raise

        log.info("Recovery completed", new_instance_id=new_instance_id)
        return RecoveryResult(
            disposition=SignalDisposition.COMPLETED,
            interrupted_instance_id=signal.instance_id,
            managed_instance_id=managed_instance_id,
            new_instance_id=new_instance_id,
        )

    def wait_until_running(self, instance_id: str) -> None:
        """Block until ``instance_id`` is running.

        An instance that DescribeInstances does not know yet counts as still
        pending; EC2's read-after-launch is eventually consistent.

        Raises:
            InstanceTerminatedError: The instance entered a terminal state
            InstanceStartTimeoutError: The poll budget ran out
        """
        logger.info("Waiting for instance to be running", instance_id=instance_id)

        for attempt in range(1, self._poll.max_attempts + 1):
            try:
                state = self._compute.describe(instance_id).state
            except InstanceNotFoundError:
                state = None

            logger.debug("Instance state check", instance_id=instance_id, state=state, attempt=attempt)

            if state == InstanceState.RUNNING:
                logger.info("Instance is now running", instance_id=instance_id, attempts=attempt)
                return

            if state in TERMINAL_STATES:
                raise InstanceTerminatedError(instance_id, str(state))

            if attempt < self._poll.max_attempts:
                self._sleep(self._poll.interval_seconds)

        raise InstanceStartTimeoutError(instance_id, self._poll.budget_seconds)
