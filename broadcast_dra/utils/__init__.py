"""Shared utilities (logging)."""

from broadcast_dra.utils.logger import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
