"""Shared utilities."""

from .config import Settings, get_settings
from .numbers import is_finite_number, round_half_up

__all__ = ["Settings", "get_settings", "is_finite_number", "round_half_up"]
