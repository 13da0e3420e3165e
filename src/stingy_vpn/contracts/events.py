# src/stingy_vpn/contracts/events.py
"""Signals delivered by EventBridge.

EventBridge delivers EC2 notifications at-least-once: the same signal can
arrive twice, and signals for different instances can arrive in any order.
These types carry no delivery guarantees of their own. Controllers make
handling idempotent by comparing the signaled instance id against the
Authoritative Resource Reference.

Envelope shape (abridged):

    {
        "detail-type": "EC2 Spot Instance Interruption Warning",
        "source": "aws.ec2",
        "detail": {"instance-id": "i-0abc", "instance-action": "terminate"}
    }
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from stingy_vpn.contracts.enums import InstanceState
from stingy_vpn.contracts.errors import MalformedSignalError

SPOT_INTERRUPTION_DETAIL_TYPE = "EC2 Spot Instance Interruption Warning"
STATE_CHANGE_DETAIL_TYPE = "EC2 Instance State-change Notification"


def _detail(event: Mapping[str, Any], expected_detail_type: str) -> Mapping[str, Any]:
    """Extract and sanity-check the ``detail`` object of an envelope.

    ``detail-type`` is optional so that bare test events work, but when it
    is present it must match. A rule wired to the wrong handler is a
    deployment bug.
    """
    detail_type = event.get("detail-type")
    if detail_type is not None and detail_type != expected_detail_type:
        raise MalformedSignalError(f"Expected detail-type {expected_detail_type!r}, got {detail_type!r}")

    detail = event.get("detail")
    if not isinstance(detail, Mapping):
        raise MalformedSignalError("Event has no 'detail' object")
    return detail


def _required_str(detail: Mapping[str, Any], key: str) -> str:
    value = detail.get(key)
    if not isinstance(value, str) or not value:
        raise MalformedSignalError(f"Event detail is missing {key!r}")
    return value


@dataclass(frozen=True, slots=True)
class InterruptionSignal:
    """A spot instance is about to be reclaimed.

    Attributes:
        instance_id: Instance that is about to disappear
        action: AWS action hint ("terminate", "stop" or "hibernate")
    """

    instance_id: str
    action: str

    @classmethod
    def from_event(cls, event: Mapping[str, Any]) -> "InterruptionSignal":
        detail = _detail(event, SPOT_INTERRUPTION_DETAIL_TYPE)
        return cls(
            instance_id=_required_str(detail, "instance-id"),
            action=_required_str(detail, "instance-action"),
        )


@dataclass(frozen=True, slots=True)
class ReadinessSignal:
    """An instance transitioned lifecycle state.

    ``state`` is kept as the raw string so that states this code does not
    know about are still ignored rather than rejected.
    """

    instance_id: str
    state: str

    @property
    def is_running(self) -> bool:
        return self.state == InstanceState.RUNNING

    @classmethod
    def from_event(cls, event: Mapping[str, Any]) -> "ReadinessSignal":
        detail = _detail(event, STATE_CHANGE_DETAIL_TYPE)
        return cls(
            instance_id=_required_str(detail, "instance-id"),
            state=_required_str(detail, "state"),
        )
