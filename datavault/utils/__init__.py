"""Shared utilities: logging setup."""

from datavault.utils.logger import setup_logger

__all__ = ["setup_logger"]
