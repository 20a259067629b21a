"""Observability infrastructure for uid-bot.

Provides structured logging with per-command correlation IDs and
Prometheus metrics for the provisioning pipeline.

Quick start::

    from uid_bot.observability import configure_logging, get_logger
    from uid_bot.observability.metrics import metrics_text

    configure_logging()
"""

from .logging import bind_request_id, configure_logging, get_logger, request_id_ctx
from .metrics import metrics_text

__all__ = [
    "bind_request_id",
    "configure_logging",
    "get_logger",
    "metrics_text",
    "request_id_ctx",
]
