"""Clients for the external systems the handlers talk to.

- ParameterStoreClient: SSM Parameter Store (StateStore protocol)
- EC2ComputeClient: EC2 (ComputePlatform protocol)
- CloudflareDnsClient: Cloudflare v4 API (DnsProvider protocol)
"""

from stingy_vpn.clients.cloudflare import CloudflareDnsClient
from stingy_vpn.clients.ec2 import DEFAULT_INSTANCE_TAGS, EC2ComputeClient
from stingy_vpn.clients.ssm import ParameterStoreClient

__all__ = [
    "DEFAULT_INSTANCE_TAGS",
    "CloudflareDnsClient",
    "EC2ComputeClient",
    "ParameterStoreClient",
]
