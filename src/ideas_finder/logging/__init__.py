"""Logging setup -- JSON rotating file plus console output."""

from .setup import setup_logging

__all__ = ["setup_logging"]
