# src/stingy_vpn/contracts/state_store.py
"""StateStore protocol for the shared key/value store.

Both handlers consult the same store:
- clients/ssm.py (ParameterStoreClient, the production implementation)
- core/reference.py (InstanceReference, the Authoritative Resource Reference)

Keys are hierarchical strings scoped by a deployment prefix, for example
``/stingy-vpn/prod/instance-id``.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class StateStore(Protocol):
    """Durable key/value store.

    There is no compare-and-swap: ``put`` overwrites unconditionally and the
    last writer wins.
    """

    def get(self, name: str, *, decrypt: bool = True) -> str:
        """Read a value.

        Args:
            name: Fully qualified key
            decrypt: Decrypt encrypted values at read time

        Returns:
            The stored value

        Raises:
            ParameterNotFoundError: If the key does not exist or is empty
        """
        ...

    def put(self, name: str, value: str, *, overwrite: bool = True) -> None:
        """Write a value.

        Args:
            name: Fully qualified key
            value: New value
            overwrite: Replace an existing value
        """
        ...
