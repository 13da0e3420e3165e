# tests/integration/test_recovery_to_dns.py
"""End-to-end: spot interruption -> replacement -> DNS update.

Both controllers share one in-memory state store and one fake EC2; the DNS
side goes through the real CloudflareDnsClient against a mocked API.
"""

import json

import httpx
import pytest
import respx

from stingy_vpn.clients.cloudflare import CloudflareDnsClient
from stingy_vpn.contracts import DnsUpdateError, InterruptionSignal, ReadinessSignal, SignalDisposition
from stingy_vpn.core.reference import ParameterPaths
from stingy_vpn.engine.reconciler import DEFAULT_ADDRESS_RETRY, DEFAULT_DNS_RETRY, DnsReconciler
from stingy_vpn.engine.recovery import RecoveryController
from stingy_vpn.engine.retry import RetryManager
from tests.conftest import TOKEN
from tests.fixtures import FakeComputePlatform, InMemoryStateStore, SleepRecorder

pytestmark = pytest.mark.integration

BASE_URL = "https://api.cloudflare.test/client/v4"
RECORD_URL = f"{BASE_URL}/zones/zone-1/dns_records/record-1"
NEW_IP = "203.0.113.7"


def _cloudflare_ok(request: httpx.Request) -> httpx.Response:
    content = json.loads(request.content)["content"]
    return httpx.Response(
        200,
        json={
            "success": True,
            "errors": [],
            "messages": [],
            "result": {"id": "record-1", "type": "A", "name": "vpn.example.com", "content": content, "ttl": 60, "proxied": False},
        },
    )


@pytest.fixture
def world(paths: ParameterPaths):
    store = InMemoryStateStore({paths.instance_id: "i-old", paths.cloudflare_token: TOKEN})
    compute = FakeComputePlatform(launch_ids=["i-new"])
    compute.script("i-new", states=["pending", "pending", "running"], ips=[None, None, None, NEW_IP])
    sleep = SleepRecorder()
    dns = CloudflareDnsClient("zone-1", "record-1", base_url=BASE_URL)
    recovery = RecoveryController(store, paths, compute, launch_template_id="lt-0abc", sleep=sleep)
    reconciler = DnsReconciler(
        store,
        paths,
        compute,
        dns,
        address_retry=RetryManager(DEFAULT_ADDRESS_RETRY, sleep=sleep),
        dns_retry=RetryManager(DEFAULT_DNS_RETRY, sleep=sleep),
    )
    yield store, compute, recovery, reconciler
    dns.close()


@respx.mock
def test_interruption_moves_dns_to_replacement(world, paths) -> None:
    store, compute, recovery, reconciler = world
    route = respx.patch(RECORD_URL).mock(side_effect=_cloudflare_ok)

    recovered = recovery.handle(InterruptionSignal("i-old", "terminate"))

    assert recovered.disposition == SignalDisposition.COMPLETED
    assert recovered.new_instance_id == "i-new"
    assert store.values[paths.instance_id] == "i-new"
    assert compute.launches == ["lt-0abc"]

    # The interrupted instance shutting down must not touch DNS.
    assert reconciler.handle(ReadinessSignal("i-old", "shutting-down")).disposition == SignalDisposition.IGNORED
    # EC2 announces the replacement is running.
    reconciled = reconciler.handle(ReadinessSignal("i-new", "running"))

    assert reconciled.disposition == SignalDisposition.COMPLETED
    assert reconciled.public_ip == NEW_IP
    assert reconciled.record_name == "vpn.example.com"
    assert route.call_count == 1
    request = route.calls.last.request
    assert request.headers["Authorization"] == f"Bearer {TOKEN}"
    assert json.loads(request.content) == {"content": NEW_IP}


@respx.mock
def test_redelivered_interruption_after_recovery_is_ignored(world) -> None:
    _, compute, recovery, _ = world
    respx.patch(RECORD_URL).mock(side_effect=_cloudflare_ok)

    recovery.handle(InterruptionSignal("i-old", "terminate"))
    duplicate = recovery.handle(InterruptionSignal("i-old", "terminate"))

    assert duplicate.disposition == SignalDisposition.IGNORED
    assert duplicate.managed_instance_id == "i-new"
    assert compute.launches == ["lt-0abc"]


@respx.mock
def test_cloudflare_outage_exhausts_dns_budget(world) -> None:
    _, _, recovery, reconciler = world
    route = respx.patch(RECORD_URL).mock(
        return_value=httpx.Response(500, json={"success": False, "errors": [{"code": 1000, "message": "Internal error"}]})
    )
    recovery.handle(InterruptionSignal("i-old", "terminate"))

    with pytest.raises(DnsUpdateError, match="Internal error") as exc_info:
        reconciler.handle(ReadinessSignal("i-new", "running"))

    assert exc_info.value.status_code == 500

    assert route.call_count == 3
