"""
Utility modules for the panel backend.

This package contains shared utilities used across the application:
- logging_config: Structured logging (console in development, JSON files in production)
"""

from panel.src.utils.logging_config import (
    get_logger,
    init_logging,
)

__all__ = [
    "get_logger",
    "init_logging",
]
