"""Root logger setup."""

import logging

from app.config import settings


def configure_logging(level: str = None) -> None:
    """Configure the root logger once, honouring TRACE and VERBOSE modes."""
    log_level_str = (level or settings.log_level).upper()
    if log_level_str == "TRACE":
        log_level = logging.TRACE
    elif log_level_str == "VERBOSE":
        log_level = logging.DEBUG
    else:
        log_level = getattr(logging, log_level_str, logging.INFO)

    root = logging.getLogger()
    if root.hasHandlers():
        return

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)-8s - %(message)s'
    )

    # VERBOSE keeps HTTP client chatter and connector wire traces
    if log_level_str == "VERBOSE":
        http_level = logging.DEBUG
        connectors_level = logging.TRACE
        sync_level = logging.DEBUG
        root.info("VERBOSE mode enabled: HTTP details and connector traces active for debugging.")
    elif log_level_str == "TRACE":
        http_level = logging.TRACE
        connectors_level = logging.TRACE
        sync_level = logging.TRACE
    else:
        http_level = logging.WARNING
        connectors_level = logging.DEBUG if log_level <= logging.DEBUG else log_level
        sync_level = log_level

    logging.getLogger("httpcore").setLevel(http_level)
    logging.getLogger("httpx").setLevel(http_level)
    logging.getLogger("apscheduler").setLevel(max(log_level, logging.INFO))
    logging.getLogger("app.connectors").setLevel(connectors_level)
    logging.getLogger("app.services.sync_service").setLevel(sync_level)

    if log_level_str == "TRACE":
        root.trace("Trace logging enabled at startup (verbose details).")
    else:
        root.debug("Debug logging enabled at startup.")
