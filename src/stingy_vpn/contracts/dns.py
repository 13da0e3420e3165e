# src/stingy_vpn/contracts/dns.py
"""DnsProvider protocol and the record type it returns."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class DnsRecord:
    """A DNS record as owned by the provider.

    The reconciler overwrites ``content``; it never merges with, or trusts,
    a previous value.
    """

    id: str
    type: str
    name: str
    content: str
    ttl: int
    proxied: bool

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "DnsRecord":
        """Build from a Cloudflare ``result`` object."""
        return cls(
            id=data["id"],
            type=data["type"],
            name=data["name"],
            content=data["content"],
            ttl=int(data["ttl"]),
            proxied=bool(data["proxied"]),
        )


@runtime_checkable
class DnsProvider(Protocol):
    """Updates one pre-existing DNS record."""

    def update_record_content(self, api_token: str, content: str) -> DnsRecord:
        """Partially update the record so that it points at ``content``.

        Raises:
            DnsUpdateError: If the provider rejected the update
        """
        ...
