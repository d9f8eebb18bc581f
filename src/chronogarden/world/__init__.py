"""Economy primitives: resource ledger and crop growth clock."""

from .growth import crop_maturity, effective_growth_time, is_mature, maturity, remaining_seconds
from .ledger import InsufficientResourceError, ResourceLedger

__all__ = [
    "InsufficientResourceError",
    "ResourceLedger",
    "crop_maturity",
    "effective_growth_time",
    "is_mature",
    "maturity",
    "remaining_seconds",
]
