# tests/fixtures/__init__.py
"""Shared test doubles for stingy-vpn tests.

Available fakes:
- InMemoryStateStore: StateStore backed by a dict
- FakeComputePlatform: ComputePlatform with scripted states and addresses
- FakeDnsProvider: DnsProvider with scripted failures
"""

from tests.fixtures.fakes import FakeComputePlatform, FakeDnsProvider, InMemoryStateStore, SleepRecorder

__all__ = [
    "FakeComputePlatform",
    "FakeDnsProvider",
    "InMemoryStateStore",
    "SleepRecorder",
]
