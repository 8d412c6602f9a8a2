"""
Utility modules for the CMA engine.
"""

from .formatting import format_currency, format_percent, format_quantity
from .config import Config

__all__ = ["format_currency", "format_percent", "format_quantity", "Config"]
