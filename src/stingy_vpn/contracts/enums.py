"""Status codes and lifecycle names used across subsystem boundaries."""

from enum import StrEnum


class InstanceState(StrEnum):
    """EC2 instance lifecycle state names.

    Values match the ``State.Name`` field returned by DescribeInstances and
    the ``detail.state`` field of EC2 state-change notifications.
    """

    PENDING = "pending"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting-down"
    TERMINATED = "terminated"
    STOPPING = "stopping"
    STOPPED = "stopped"

    @property
    def is_terminal(self) -> bool:
        """Whether an instance in this state can never become running again."""
        return self in TERMINAL_STATES


# A tuple, so membership tests compare by value and work for raw strings too.
TERMINAL_STATES: tuple[InstanceState, ...] = (InstanceState.SHUTTING_DOWN, InstanceState.TERMINATED)


class SignalDisposition(StrEnum):
    """What a controller did with a delivered signal."""

    IGNORED = "ignored"
    COMPLETED = "completed"
