"""Logging infrastructure module."""

from discord_monitor.infrastructure.logging.setup import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
