"""
Utilities package for ContractDesk.

Exports shared helpers for logging, profiling, and text normalisation.
Keep this package lightweight and free of domain-specific logic.
"""

from contractdesk.utils.logging import configure_logging, get_logger
from contractdesk.utils.profiler import ProfileStats, profile_block
from contractdesk.utils.text import (
    normalize_field_value,
    normalize_for_comparison,
    normalize_text,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "ProfileStats",
    "profile_block",
    "normalize_field_value",
    "normalize_for_comparison",
    "normalize_text",
]
