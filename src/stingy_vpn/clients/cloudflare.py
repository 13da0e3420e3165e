# src/stingy_vpn/clients/cloudflare.py
"""Cloudflare v4 implementation of the DnsProvider protocol.

Only one operation is needed: a partial update (PATCH) of a single,
pre-existing record's ``content``. The record's name, type, TTL and proxy
flag are left to whoever created it.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
import structlog

from stingy_vpn.contracts.dns import DnsRecord
from stingy_vpn.contracts.errors import DnsUpdateError
from stingy_vpn.core.config import DEFAULT_CLOUDFLARE_API_BASE_URL

logger = structlog.get_logger(__name__)


class CloudflareDnsClient:
    """Updates one Cloudflare DNS record.

    The API token is passed per call rather than held by the client, so a
    rotated token in Parameter Store takes effect on the next invocation.

    Example:
        dns = CloudflareDnsClient(zone_id="023e1", record_id="372e6")
        record = dns.update_record_content(api_token, "203.0.113.7")
        print(record.name, record.content)
    """

    def __init__(
        self,
        zone_id: str,
        record_id: str,
        *,
        base_url: str = DEFAULT_CLOUDFLARE_API_BASE_URL,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize Cloudflare client.

        Args:
            zone_id: Zone holding the record
            record_id: Record to update
            base_url: API root, without trailing slash
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self._zone_id = zone_id
        self._record_id = record_id
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(timeout=timeout, transport=transport)

    @property
    def record_url(self) -> str:
        return f"{self._base_url}/zones/{self._zone_id}/dns_records/{self._record_id}"

    def update_record_content(self, api_token: str, content: str) -> DnsRecord:
        """PATCH the record's content.

        Raises:
            DnsUpdateError: Non-2xx status, a 2xx body that is not a JSON
                object, says ``success: false`` or lacks a complete record,
                or a connection failure or timeout
        """
        logger.info(
            "Updating Cloudflare DNS record",
            zone_id=self._zone_id,
            record_id=self._record_id,
            content=content,
        )
        try:
            response = self._client.patch(
                self.record_url,
                headers={
                    "Authorization": f"Bearer {api_token}",
                    "Content-Type": "application/json",
                },
                json={"content": content},
            )
        except httpx.TransportError as e:
            raise DnsUpdateError(f"Cloudflare API request failed: {e!r}", status_code=None) from e

        if not response.is_success:
            raise DnsUpdateError(
                f"Cloudflare API error: {response.status_code} - {response.text}",
                status_code=response.status_code,
                errors=_errors_from_body(response),
            )

        try:
            data = response.json()
        except json.JSONDecodeError as e:
            raise DnsUpdateError(
                f"Cloudflare API returned a non-JSON body: {response.text}",
                status_code=response.status_code,
            ) from e

        if not isinstance(data, dict):
            raise DnsUpdateError(
                f"Cloudflare API returned an unexpected body: {response.text}",
                status_code=response.status_code,
            )

        if not data.get("success"):
            errors = data.get("errors", [])
            raise DnsUpdateError(
                f"Cloudflare API failed: {json.dumps(errors)}",
                status_code=response.status_code,
                errors=errors,
            )

        try:
            record = DnsRecord.from_api(data["result"])
        except (KeyError, TypeError, ValueError) as e:
            raise DnsUpdateError(
                f"Cloudflare API returned an incomplete record: {response.text}",
                status_code=response.status_code,
            ) from e
        logger.info(
            "Cloudflare DNS record updated",
            record_name=record.name,
            content=record.content,
        )
        return record

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._client.close()


def _errors_from_body(response: httpx.Response) -> Any:
    """Best-effort extraction of the ``errors`` array from an error response."""
    try:
        body = response.json()
    except json.JSONDecodeError:
        return None
    if isinstance(body, dict):
        return body.get("errors")
    return None
