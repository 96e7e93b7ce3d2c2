"""
Configuration Management Module

This module handles loading, validating, and providing access to client
configuration from environment variables (.env file).

Uses Pydantic Settings for automatic validation and type conversion.

Key Features:
- Loads configuration from .env file
- Provides the venue WebSocket base URL used to build connection URLs
- Controls optional heartbeat and frame size limits (no timeouts by default)
- Sizes the default consumer channel for decoded events

Usage:
    from core.config import settings

    print(settings.okex_ws_base_url)
    print(settings.event_queue_size)
"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """
    Client Settings

    Values are automatically loaded from environment variables or .env file.

    Attributes:
        okex_ws_base_url: Base URL that endpoints ("public", "private", ...) are joined to
        debug: Force DEBUG logging regardless of log_level
        log_level: Logging level name
        ws_heartbeat: Seconds between client pings (None disables heartbeats)
        ws_max_msg_size: Largest inbound frame accepted, in bytes (0 = unlimited)
        event_queue_size: Capacity of the default consumer channel
    """

    # ============================================
    # Venue Configuration
    # ============================================

    okex_ws_base_url: str = Field(
        default="wss://ws.okx.com:8443/ws/v5",
        description="OKEx WebSocket base URL (endpoint is appended after a slash)"
    )

    # ============================================
    # Application Configuration
    # ============================================

    debug: bool = Field(
        default=False,
        description="Enable debug mode (forces DEBUG logging)"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # ============================================
    # WebSocket Session
    # ============================================

    ws_heartbeat: Optional[float] = Field(
        default=None,
        description="Seconds between automatic pings; None means no heartbeat"
    )

    ws_max_msg_size: int = Field(
        default=4 * 1024 * 1024,
        description="Maximum inbound frame size in bytes (0 = unlimited)"
    )

    event_queue_size: int = Field(
        default=1000,
        description="Capacity of the default asyncio.Queue used for decoded events"
    )

    # ============================================
    # Pydantic Settings Configuration
    # ============================================

    model_config = SettingsConfigDict(
        # Look for .env file in the project root
        env_file=".env",
        # Ignore extra fields in .env that aren't defined here
        extra="ignore",
        # Case-insensitive environment variable matching
        case_sensitive=False
    )

    def ws_url(self, endpoint: str) -> str:
        """
        Join the configured base URL with a relative endpoint.

        Example:
            >>> settings.ws_url("public")
            'wss://ws.okx.com:8443/ws/v5/public'
        """
        return f"{self.okex_ws_base_url.rstrip('/')}/{endpoint.lstrip('/')}"

    @property
    def effective_log_level(self) -> str:
        """Log level actually applied: DEBUG when debug is on, else log_level"""
        return "DEBUG" if self.debug else self.log_level.upper()


# ============================================
# Global Settings Instance
# ============================================

# Loaded once and reused
settings = Settings()


# ============================================
# Configuration Validation
# ============================================

def validate_configuration(config: Optional[Settings] = None) -> None:
    """
    Validate critical configuration settings.

    Args:
        config: Settings to check (defaults to the global instance)

    Raises:
        ValueError: If required configuration is missing or invalid
    """
    # Import logger here to avoid circular import
    # (logging.py imports config.py, so we can't import at module level)
    from core.logging import logger

    config = config or settings

    if not config.okex_ws_base_url.startswith(("ws://", "wss://")):
        raise ValueError(
            f"Invalid OKEX_WS_BASE_URL: '{config.okex_ws_base_url}'. "
            f"Must start with ws:// or wss://"
        )

    valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if config.log_level.upper() not in valid_log_levels:
        raise ValueError(
            f"Invalid LOG_LEVEL: '{config.log_level}'. "
            f"Must be one of: {', '.join(valid_log_levels)}"
        )

    if config.event_queue_size < 0:
        raise ValueError(f"Invalid EVENT_QUEUE_SIZE: {config.event_queue_size}. Must be >= 0")

    if config.ws_heartbeat is not None and config.ws_heartbeat <= 0:
        raise ValueError(f"Invalid WS_HEARTBEAT: {config.ws_heartbeat}. Must be positive or unset")

    logger.info("Configuration validated successfully")
    logger.info(f"OKEx WebSocket: {config.okex_ws_base_url}")
    logger.info(f"Heartbeat: {config.ws_heartbeat or 'disabled'}")
    logger.info(f"Log level: {config.effective_log_level}")
