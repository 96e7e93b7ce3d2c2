"""
Unified Logging Configuration

This module sets up the logging used by every part of the client.
All modules should import a logger from here instead of using print().

What gets logged:
    DEBUG    - Every frame received or sent (type and a payload preview)
    INFO     - Connection lifecycle and protocol acknowledgements
    WARNING  - Tolerated failures (consumer channel refused an event, error acks)
    ERROR    - Failures that terminate the event loop or a connection attempt

Usage:
    from core.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Connected")

Configuration:
    Log level is controlled by the LOG_LEVEL setting in .env file.
"""

import logging
import sys
from typing import Optional, Union


ROOT_LOGGER_NAME = "tradewire"

# Longest payload excerpt written by log_frame()
FRAME_PREVIEW_LENGTH = 200


def setup_logging(
    log_level: str = "INFO",
    log_format: Optional[str] = None,
    include_timestamp: bool = True,
    include_module: bool = True
) -> logging.Logger:
    """
    Configure and return the library logger.

    Only the "tradewire" logger hierarchy is configured; the root logger of the
    host application is left alone.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom log format string (uses default if None)
        include_timestamp: Include timestamp in log messages
        include_module: Include logger name in log messages

    Returns:
        logging.Logger: Configured logger instance

    Example:
        >>> logger = setup_logging(log_level="DEBUG")
        >>> logger.info("Client started")
        2024-01-01 12:00:00 [INFO] tradewire: Client started
    """
    if log_format is None:
        format_parts = []

        if include_timestamp:
            format_parts.append("%(asctime)s")

        format_parts.append("[%(levelname)s]")

        if include_module:
            format_parts.append("%(name)s:")

        format_parts.append("%(message)s")

        log_format = " ".join(format_parts)

    level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)

    # Replace our own handler on reconfiguration, never stack them
    for handler in list(logger.handlers):
        if getattr(handler, "_tradewire", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(log_format, datefmt="%Y-%m-%d %H:%M:%S"))
    handler._tradewire = True
    logger.addHandler(handler)

    return logger


# ============================================
# Initialize Logger with Settings
# ============================================

try:
    from core.config import settings
    log_level = settings.effective_log_level
except ImportError:
    log_level = "INFO"

logger = setup_logging(log_level=log_level)


# ============================================
# Convenience Functions
# ============================================

def get_logger(name: str) -> logging.Logger:
    """
    Get a child logger for a module.

    Example:
        # In exchanges/okex/ws_client.py:
        logger = get_logger(__name__)  # "tradewire.exchanges.okex.ws_client"
    """
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def set_log_level(level: str) -> None:
    """Change the library log level at runtime."""
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))


# ============================================
# Log Helper Functions
# ============================================

def log_websocket_event(exchange: str, event: str, endpoint: str = None, details: str = None) -> None:
    """
    Log a connection lifecycle event with consistent formatting.

    Args:
        exchange: Exchange name
        event: Event type (e.g., "connected", "disconnected", "error")
        endpoint: Endpoint the event relates to (optional)
        details: Additional details (optional)

    Example:
        >>> log_websocket_event("okex", "connected", "public")
        [INFO] WebSocket: okex connected | Endpoint: public
    """
    endpoint_str = f" | Endpoint: {endpoint}" if endpoint else ""
    details_str = f" | {details}" if details else ""

    level = logging.ERROR if event == "error" else logging.INFO
    logger.log(level, f"WebSocket: {exchange} {event}{endpoint_str}{details_str}")


def log_frame(exchange: str, direction: str, frame_type: str, payload: Union[str, bytes, None] = None) -> None:
    """
    Trace a single frame at DEBUG level.

    Args:
        exchange: Exchange name
        direction: "in" or "out"
        frame_type: Frame type name (TEXT, PING, CLOSE, ...)
        payload: Frame body; only a prefix is logged
    """
    if not logger.isEnabledFor(logging.DEBUG):
        return

    preview = ""
    if payload:
        text = payload if isinstance(payload, str) else repr(payload)
        if len(text) > FRAME_PREVIEW_LENGTH:
            text = text[:FRAME_PREVIEW_LENGTH] + "..."
        preview = f" | {text}"

    logger.debug(f"Frame {direction}: {exchange} {frame_type}{preview}")
