# src/stingy_vpn/clients/ec2.py
"""EC2 implementation of the ComputePlatform protocol.

botocore failures are wrapped in ComputePlatformError so the engine can
classify them without importing botocore.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from stingy_vpn.contracts.compute import InstanceDescription
from stingy_vpn.contracts.errors import ComputePlatformError, InstanceNotFoundError, LaunchError

logger = structlog.get_logger(__name__)

# Tags applied to every replacement instance.
DEFAULT_INSTANCE_TAGS: Mapping[str, str] = {
    "Name": "stingy-vpn-server",
    "Project": "stingy-vpn",
    "ManagedBy": "Lambda",
}

_NOT_FOUND_CODES = frozenset({"InvalidInstanceID.NotFound", "InvalidInstanceID.Malformed"})


class EC2ComputeClient:
    """Launches and describes EC2 instances.

    Example:
        compute = EC2ComputeClient(subnet_id="subnet-0abc")
        instance_id = compute.launch_from_template("lt-0123")
        description = compute.describe(instance_id)
    """

    def __init__(
        self,
        client: Any = None,
        *,
        subnet_id: str | None = None,
        tags: Mapping[str, str] = DEFAULT_INSTANCE_TAGS,
    ) -> None:
        """Initialize EC2 client.

        Args:
            client: boto3 EC2 client; a default one is created when omitted
            subnet_id: Subnet to launch into; the template's subnet when None
            tags: Tags applied to launched instances
        """
        self._client = client if client is not None else boto3.client("ec2")
        self._subnet_id = subnet_id
        self._tags = dict(tags)

    def launch_from_template(self, template_id: str) -> str:
        params: dict[str, Any] = {
            "LaunchTemplate": {"LaunchTemplateId": template_id},
            "MinCount": 1,
            "MaxCount": 1,
            "TagSpecifications": [
                {
                    "ResourceType": "instance",
                    "Tags": [{"Key": k, "Value": v} for k, v in self._tags.items()],
                }
            ],
        }
        if self._subnet_id is not None:
            params["SubnetId"] = self._subnet_id

        logger.info("Launching instance", launch_template_id=template_id, subnet_id=self._subnet_id)
        try:
            response = self._client.run_instances(**params)
        except (ClientError, BotoCoreError) as e:
            raise ComputePlatformError(f"RunInstances failed: {e}") from e

        instances = response.get("Instances") or []
        if not instances:
            raise LaunchError("Failed to launch instance: RunInstances returned no instances")

        instance_id = instances[0].get("InstanceId")
        if not instance_id:
            raise LaunchError("Failed to launch instance: instance id not returned")

        logger.info("Instance launched", instance_id=instance_id)
        return str(instance_id)

    def describe(self, instance_id: str) -> InstanceDescription:
        try:
            response = self._client.describe_instances(InstanceIds=[instance_id])
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _NOT_FOUND_CODES:
                raise InstanceNotFoundError(instance_id) from e
            raise ComputePlatformError(f"DescribeInstances failed for {instance_id}: {e}") from e
        except BotoCoreError as e:
            raise ComputePlatformError(f"DescribeInstances failed for {instance_id}: {e}") from e

        instances = [instance for reservation in response.get("Reservations", []) for instance in reservation.get("Instances", [])]
        if not instances:
            raise InstanceNotFoundError(instance_id)

        instance = instances[0]
        return InstanceDescription(
            instance_id=instance_id,
            state=instance.get("State", {}).get("Name"),
            public_ip=instance.get("PublicIpAddress"),
        )
