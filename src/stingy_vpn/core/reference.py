"""
The Authoritative Resource Reference.

A single parameter, ``{prefix}/instance-id``, names the instance that is
currently "the" VPN endpoint. Provisioning creates it holding the sentinel
``"initial"``; the recovery handler overwrites it once per successful
recovery; both handlers read it on every invocation to decide whether a
signal concerns them.

There is no lock or conditional write around it. Two recoveries racing on
the same stale id can both pass the applicability check; the later write
wins.
"""

from dataclasses import dataclass

import structlog

from stingy_vpn.contracts.state_store import StateStore

logger = structlog.get_logger(__name__)

INITIAL_INSTANCE_ID = "initial"


@dataclass(frozen=True, slots=True)
class ParameterPaths:
    """Parameter Store keys under one deployment prefix."""

    prefix: str

    @property
    def instance_id(self) -> str:
        return f"{self.prefix}/instance-id"

    @property
    def cloudflare_token(self) -> str:
        return f"{self.prefix}/cloudflare-token"


class InstanceReference:
    """Reads and writes the managed instance id through a StateStore.

    Nothing is cached: every call to current() goes to the store, because a
    concurrent invocation may have moved the reference in the meantime.
    """

    def __init__(self, store: StateStore, paths: ParameterPaths) -> None:
        self._store = store
        self._paths = paths

    @property
    def key(self) -> str:
        return self._paths.instance_id

    def current(self) -> str:
        """Return the managed instance id, or the sentinel before first recovery.

        Raises:
            ParameterNotFoundError: If provisioning never created the parameter
        """
        return self._store.get(self.key)

    def designate(self, instance_id: str) -> None:
        """Make ``instance_id`` the managed instance."""
        self._store.put(self.key, instance_id, overwrite=True)
        logger.info("Managed instance updated", parameter=self.key, instance_id=instance_id)

    @staticmethod
    def is_sentinel(value: str) -> bool:
        """Whether ``value`` is the bootstrap placeholder rather than a real id."""
        return value == INITIAL_INSTANCE_ID
