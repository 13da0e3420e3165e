# src/stingy_vpn/clients/ssm.py
"""SSM Parameter Store implementation of the StateStore protocol."""

from __future__ import annotations

from typing import Any

import boto3
import structlog
from botocore.exceptions import ClientError

from stingy_vpn.contracts.errors import ParameterNotFoundError

logger = structlog.get_logger(__name__)


class ParameterStoreClient:
    """Key/value access to SSM Parameter Store.

    SecureString parameters (the Cloudflare token) are decrypted at read
    time with the function's KMS permissions. Values are never logged.

    Example:
        store = ParameterStoreClient()
        instance_id = store.get("/stingy-vpn/prod/instance-id")
    """

    def __init__(self, client: Any = None) -> None:
        """Initialize with an optional pre-built boto3 SSM client.

        Args:
            client: boto3 SSM client; a default one is created when omitted
        """
        self._client = client if client is not None else boto3.client("ssm")

    def get(self, name: str, *, decrypt: bool = True) -> str:
        try:
            response = self._client.get_parameter(Name=name, WithDecryption=decrypt)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ParameterNotFound":
                raise ParameterNotFoundError(name) from e
            raise

        value = response.get("Parameter", {}).get("Value")
        if not value:
            raise ParameterNotFoundError(name)
        return str(value)

    def put(self, name: str, value: str, *, overwrite: bool = True) -> None:
        self._client.put_parameter(Name=name, Value=value, Overwrite=overwrite)
        logger.debug("Parameter written", name=name)
