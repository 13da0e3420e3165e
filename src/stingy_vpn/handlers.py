# src/stingy_vpn/handlers.py
"""AWS Lambda entry points.

Two functions are deployed from this module, each behind its own
EventBridge rule:

    stingy_vpn.handlers.recovery_handler   EC2 Spot Instance Interruption Warning
    stingy_vpn.handlers.ddns_handler       EC2 Instance State-change Notification

Configuration is read and validated on the first invocation of a fresh
execution environment (cold start). The resulting controller and its
clients are memoized for later warm invocations. Nothing memoized is
mutable state: the managed instance id and the DNS token are read from
Parameter Store on every invocation.

A handler that raises marks the invocation failed; EventBridge then
redelivers (twice, per the rule's retry policy).
"""

import functools
import time
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any, TypeVar

import structlog

from stingy_vpn.clients import CloudflareDnsClient, EC2ComputeClient, ParameterStoreClient
from stingy_vpn.contracts.compute import ComputePlatform
from stingy_vpn.contracts.dns import DnsProvider
from stingy_vpn.contracts.errors import ConfigurationError, MalformedSignalError
from stingy_vpn.contracts.events import InterruptionSignal, ReadinessSignal
from stingy_vpn.contracts.state_store import StateStore
from stingy_vpn.core.config import DdnsSettings, RecoverySettings, load_ddns_settings, load_recovery_settings
from stingy_vpn.core.logging import configure_logging
from stingy_vpn.core.reference import ParameterPaths
from stingy_vpn.engine.reconciler import DnsReconciler
from stingy_vpn.engine.recovery import PollPolicy, RecoveryController
from stingy_vpn.engine.retry import RetryConfig, RetryManager

logger = structlog.get_logger(__name__)


def build_recovery_controller(
    settings: RecoverySettings,
    *,
    store: StateStore | None = None,
    compute: ComputePlatform | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> RecoveryController:
    """Wire a RecoveryController from validated settings.

    Production clients are created for any collaborator not supplied.
    """
    return RecoveryController(
        store=store if store is not None else ParameterStoreClient(),
        paths=ParameterPaths(settings.parameter_store_prefix),
        compute=compute if compute is not None else EC2ComputeClient(subnet_id=settings.subnet_id),
        launch_template_id=settings.launch_template_id,
        poll=PollPolicy.from_settings(settings.poll),
        sleep=sleep,
    )


def build_ddns_reconciler(
    settings: DdnsSettings,
    *,
    store: StateStore | None = None,
    compute: ComputePlatform | None = None,
    dns: DnsProvider | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> DnsReconciler:
    """Wire a DnsReconciler from validated settings.

    Production clients are created for any collaborator not supplied.
    """
    if dns is None:
        dns = CloudflareDnsClient(
            settings.cloudflare_zone_id,
            settings.cloudflare_record_id,
            base_url=settings.cloudflare_api_base_url,
            timeout=settings.http_timeout_seconds,
        )
    return DnsReconciler(
        store=store if store is not None else ParameterStoreClient(),
        paths=ParameterPaths(settings.parameter_store_prefix),
        compute=compute if compute is not None else EC2ComputeClient(),
        dns=dns,
        address_retry=RetryManager(RetryConfig.from_settings(settings.address_retry), sleep=sleep),
        dns_retry=RetryManager(RetryConfig.from_settings(settings.dns_retry), sleep=sleep),
    )


S = TypeVar("S", RecoverySettings, DdnsSettings)


def _cold_start(loader: Callable[[], S]) -> S:
    """Load settings and configure logging, failing loudly on bad config."""
    try:
        settings = loader()
    except ConfigurationError as e:
        logger.error("Invalid configuration", problems=e.problems)
        raise
    configure_logging(json_output=settings.log_format == "json", level=settings.log_level)
    return settings


@functools.cache
def _recovery_controller() -> RecoveryController:
    return build_recovery_controller(_cold_start(load_recovery_settings))


@functools.cache
def _ddns_reconciler() -> DnsReconciler:
    return build_ddns_reconciler(_cold_start(load_ddns_settings))


@contextmanager
def _invocation_context(function: str, context: Any) -> Iterator[None]:
    """Bind per-invocation fields to every log line emitted inside the block."""
    request_id = getattr(context, "aws_request_id", None)
    with structlog.contextvars.bound_contextvars(function=function, request_id=request_id):
        yield


def recovery_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Lambda handler for spot interruption warnings."""
    with _invocation_context("recovery", context):
        controller = _recovery_controller()
        try:
            signal = InterruptionSignal.from_event(event)
        except MalformedSignalError as e:
            logger.error("Malformed interruption event", error=str(e), event=dict(event))
            raise
        return controller.handle(signal).to_dict()


def ddns_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Lambda handler for instance state-change notifications."""
    with _invocation_context("ddns", context):
        reconciler = _ddns_reconciler()
        try:
            signal = ReadinessSignal.from_event(event)
        except MalformedSignalError as e:
            logger.error("Malformed state-change event", error=str(e), event=dict(event))
            raise
        return reconciler.handle(signal).to_dict()
