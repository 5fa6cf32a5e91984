"""
Core utilities and configuration for CodeXAlpha.

This package provides core functionality including logging configuration,
database setup, the AI gateway and other shared utilities.
"""

from codexalpha.core.logging_config import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
