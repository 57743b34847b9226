"""Utility functions for Reelforge."""

from reelforge.utils.logging import get_logger, truncate

__all__ = ["get_logger", "truncate"]
