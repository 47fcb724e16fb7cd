"""
Sentry initialization for centralized error tracking.
Observes ingestion problems, never controls logic.
"""
import logging
from typing import Dict, Any

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

from catalog_search.config import config
from catalog_search.logger import logger


def initialize_sentry():
    """Initialize Sentry SDK if DSN is configured."""
    if not config.has_sentry:
        logger.info("Sentry not configured, skipping initialization")
        return

    try:
        sentry_sdk.init(
            dsn=config.SENTRY_DSN,
            environment=config.ENVIRONMENT,
            integrations=[
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR)
            ],
            traces_sample_rate=0.1,
            send_default_pii=False,
            debug=False,
            before_send=lambda event, hint: _enrich_sentry_event(event, hint)
        )

        logger.info("Sentry initialized for error tracking")

    except Exception as e:
        logger.error(f"Failed to initialize Sentry: {e}")


def _enrich_sentry_event(event: Dict[str, Any], hint: Dict[str, Any]) -> Dict[str, Any]:
    """Tag events with system context and group them by exception type."""
    event.setdefault("tags", {})
    event["tags"]["system"] = "catalog-search"
    event["tags"]["environment"] = config.ENVIRONMENT

    exceptions = event.get("exception", {}).get("values", [])
    if exceptions:
        exc = exceptions[0]
        event["fingerprint"] = [
            "{{ default }}",
            exc.get("type", "Unknown"),
            exc.get("module", "unknown")
        ]

    return event


def capture_parse_errors(error_count: int, total_rows: int, first_row: int, first_error: Exception):
    """Capture one summary event for all rows a parse could not normalize."""
    if not config.has_sentry:
        return

    with sentry_sdk.new_scope() as scope:
        scope.set_tag("error_type", "row_normalization")
        scope.set_extra("error_count", error_count)
        scope.set_extra("total_rows", total_rows)
        scope.set_extra("first_row", first_row)
        scope.set_extra("first_error", str(first_error))
        scope.set_level("warning")

        sentry_sdk.capture_message(
            f"{error_count} of {total_rows} catalog rows could not be normalized",
            "warning"
        )


def capture_ingestion_failure(source: str, error: Exception):
    """Capture a failed catalog load in Sentry."""
    if not config.has_sentry:
        return

    with sentry_sdk.new_scope() as scope:
        scope.set_tag("error_type", "ingestion")
        scope.set_extra("source", source)
        scope.set_level("error")

        sentry_sdk.capture_exception(error)
