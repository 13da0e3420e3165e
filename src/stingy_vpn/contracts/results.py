"""Controller outcomes.

These types answer: "What did a handler do with the signal it was given?"
Handlers return them to Lambda as plain dicts.
"""

from dataclasses import asdict, dataclass
from typing import Any

from stingy_vpn.contracts.enums import SignalDisposition


@dataclass(frozen=True, slots=True)
class RecoveryResult:
    """Outcome of handling one interruption signal.

    ``new_instance_id`` is set only when a replacement was launched.
    """

    disposition: SignalDisposition
    interrupted_instance_id: str
    managed_instance_id: str
    new_instance_id: str | None = None

    @classmethod
    def ignored(cls, interrupted_instance_id: str, managed_instance_id: str) -> "RecoveryResult":
        return cls(SignalDisposition.IGNORED, interrupted_instance_id, managed_instance_id)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    """Outcome of handling one state-change signal.

    ``public_ip`` and ``record_name`` are set only when the record was updated.
    """

    disposition: SignalDisposition
    instance_id: str
    state: str
    public_ip: str | None = None
    record_name: str | None = None

    @classmethod
    def ignored(cls, instance_id: str, state: str) -> "ReconcileResult":
        return cls(SignalDisposition.IGNORED, instance_id, state)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
