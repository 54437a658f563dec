"""Version values and the data models shared by strategies and the checker."""

from .version import ComparisonMisuseError, HeadVersion, Version, compare, parse
from .models import CheckConfig, CheckOutcome, ConfigurationError, ExtractionResult, Package

__all__ = [
    "Version",
    "HeadVersion",
    "ComparisonMisuseError",
    "compare",
    "parse",
    "Package",
    "CheckConfig",
    "CheckOutcome",
    "ExtractionResult",
    "ConfigurationError",
]
