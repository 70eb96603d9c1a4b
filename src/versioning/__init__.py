"""Version range parsing and resolution."""

from .models import RangeKind, VersionRange
from .parser import parse_range
from .resolver import VersionResolver

__all__ = [
    "RangeKind",
    "VersionRange",
    "VersionResolver",
    "parse_range",
]
