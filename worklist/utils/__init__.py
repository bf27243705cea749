"""
Utils Module - Shared Utilities

- logging/: Logging configuration, formatters, and filters
"""
from .logging import setup_logging, get_logger

__all__ = [
    'setup_logging',
    'get_logger',
]
