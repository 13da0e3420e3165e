# src/stingy_vpn/core/logging.py
"""Structured logging for the Lambda handlers.

structlog is routed through stdlib logging so boto3, httpx and our own
modules share one format. Lambda forwards stdout to CloudWatch, where one
JSON object per line is what Logs Insights can query.

Per-invocation fields (``request_id``, ``function``) are bound with
structlog.contextvars by the handlers and merged into every line.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter

# botocore logs every signing step and endpoint lookup at DEBUG; httpcore
# logs every socket event.
_NOISY_LOGGERS = (
    "boto3",
    "botocore",
    "botocore.credentials",
    "botocore.hooks",
    "botocore.loaders",
    "urllib3",
    "urllib3.connectionpool",
    "httpx",
    "httpcore",
)

_LEVEL_ALIASES = {"warn": "WARNING"}


def resolve_level(level: str) -> int:
    """Map a level name (any case, "warn" allowed) to a stdlib level number."""
    name = level.strip().lower()
    value: int = getattr(logging, _LEVEL_ALIASES.get(name, name.upper()))
    return value


def _pre_chain() -> list[Any]:
    """Processors applied to structlog and stdlib records alike."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]


def _formatter(json_output: bool) -> ProcessorFormatter:
    renderer: Any
    if json_output:
        renderer = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        renderer = [structlog.dev.ConsoleRenderer(colors=False)]
    return ProcessorFormatter(
        processors=[ProcessorFormatter.remove_processors_meta, *renderer],
        foreign_pre_chain=_pre_chain(),
    )


def configure_logging(*, json_output: bool = True, level: str = "INFO") -> None:
    """Configure structlog and the root stdlib logger.

    Called once per cold start. Calling again replaces the root handlers,
    including the one the Lambda runtime installs.

    Args:
        json_output: JSON lines if True, plain console lines otherwise
        level: DEBUG, INFO, WARN, WARNING or ERROR, any case
    """
    log_level = resolve_level(level)

    structlog.configure(
        processors=[*_pre_chain(), ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # tests reconfigure between cases
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_formatter(json_output))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    # Third-party chatter stays at WARNING unless the root is stricter.
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

