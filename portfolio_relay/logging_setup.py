"""
Structured logging setup for Lambda & local development.

PURPOSE:
- Configure consistent JSON-formatted logs for both AWS Lambda and local runs.
- Logs are structured so they can be easily queried in CloudWatch Insights.

CONTEXT:
- Used by the Lambda entrypoint and the provider client.
- Relies on structlog to enrich logs with metadata and timestamps.
- Prompts and credentials are never passed to the logger; only sizes and codes.
"""

from __future__ import annotations
import logging
import os
import sys
import structlog

SERVICE_NAME = "PortfolioRelay"

_configured = False


def configure_logging():
    """
    Configure structured JSON logging for the current environment.

    returns:
    - structlog.BoundLogger – pre-configured logger instance bound with service metadata.

    behaviour:
    - Reads log level from LOG_LEVEL environment variable (default = INFO).
    - Directs logs to stdout so AWS Lambda automatically captures them.
    - Formats logs as JSON to make them easily parsable by CloudWatch Insights.
    - Safe to call more than once; structlog is only configured the first time.

    example log entry:
    {
      "event": "response.success",
      "level": "info",
      "timestamp": "2025-10-21T13:00:00Z",
      "service": "PortfolioRelay",
      "env": "dev",
      "status": 200,
      "latency_ms": 123.4
    }
    """
    global _configured
    if not _configured:
        level = os.getenv("LOG_LEVEL", "INFO").upper()

        logging.basicConfig(
            format="%(message)s",
            stream=sys.stdout,
            level=getattr(logging, level, logging.INFO),
        )

        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.UnicodeDecoder(),
                structlog.processors.JSONRenderer(),
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        _configured = True

    return structlog.get_logger().bind(service=SERVICE_NAME, env=os.getenv("ENV", "dev"))


def get_logger(name: str):
    """Module-level logger carrying the same service metadata as the handler's."""
    return configure_logging().bind(logger=name)
