"""Data models for version ranges."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RangeKind(Enum):
    """Supported version range forms."""
    EXACT = "exact"
    CARET = "caret"
    TILDE = "tilde"
    LATEST = "latest"


@dataclass(frozen=True)
class VersionRange:
    """Normalized version range.

    ``version`` is the full three-part base version for EXACT, CARET and TILDE
    and None for LATEST. ``raw`` preserves the text as written for messages and
    lock file pins.
    """
    kind: RangeKind
    version: Optional[str]
    raw: str

    def __str__(self) -> str:
        if self.kind == RangeKind.LATEST:
            return "latest"
        if self.kind == RangeKind.CARET:
            return f"^{self.version}"
        if self.kind == RangeKind.TILDE:
            return f"~{self.version}"
        return str(self.version)

    @property
    def is_exact(self) -> bool:
        """True when the range names a single concrete version."""
        return self.kind == RangeKind.EXACT

    @classmethod
    def exact(cls, version: str) -> "VersionRange":
        """Build an EXACT range for an already concrete version."""
        return cls(kind=RangeKind.EXACT, version=version, raw=version)

    @classmethod
    def latest(cls) -> "VersionRange":
        """Build a LATEST range."""
        return cls(kind=RangeKind.LATEST, version=None, raw="")

