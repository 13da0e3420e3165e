# src/stingy_vpn/contracts/compute.py
"""ComputePlatform protocol and the instance description it returns."""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class InstanceDescription:
    """Point-in-time view of one instance.

    Attributes:
        instance_id: EC2 instance id
        state: Lifecycle state name, None when the API omitted it
        public_ip: Public IPv4 address, None until one is assigned
    """

    instance_id: str
    state: str | None
    public_ip: str | None


@runtime_checkable
class ComputePlatform(Protocol):
    """Launches and describes compute instances."""

    def launch_from_template(self, template_id: str) -> str:
        """Launch exactly one instance from a launch template.

        Returns:
            Id of the new instance

        Raises:
            LaunchError: If no instance or no instance id was returned
            ComputePlatformError: If the API call failed
        """
        ...

    def describe(self, instance_id: str) -> InstanceDescription:
        """Describe one instance.

        Raises:
            InstanceNotFoundError: If the platform does not know the instance
            ComputePlatformError: If the API call failed
        """
        ...
