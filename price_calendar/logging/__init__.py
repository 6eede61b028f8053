"""
Logging configuration and utilities for the price calendar.
"""
from .config import configure_logging, get_logger, get_refresh_logger, log_refresh_outcome

__all__ = ["configure_logging", "get_logger", "get_refresh_logger", "log_refresh_outcome"]
