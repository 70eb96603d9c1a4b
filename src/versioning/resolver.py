"""Version selection over a registry's published versions."""

import logging
from typing import Dict, List, Optional, Tuple

import semantic_version

from errors import VersionNotFound
from .models import RangeKind, VersionRange

logger = logging.getLogger(__name__)


class VersionResolver:
    """Select a concrete version for a range using semver precedence.

    By default pre-releases compete like any other version. With
    ``prefer_stable`` the npm convention applies: ranges only match
    pre-releases when their base is one, and ``latest`` falls back to a
    pre-release only when nothing stable is published.
    """

    def __init__(self, prefer_stable: bool = False):
        self.prefer_stable = prefer_stable

    def resolve(self, package: str, version_range: VersionRange, candidates: List[str]) -> str:
        """Return the highest published version satisfying ``version_range``.

        Args:
            package: Package identifier used in error messages (e.g. ``jsr:@x/y``).
            version_range: Parsed range.
            candidates: Published version strings, any order.

        Raises:
            VersionNotFound: When no candidate qualifies.
        """
        resolved, count, error = self.pick(version_range, candidates)
        if resolved is None:
            logger.debug("No match for %s@%s among %d versions: %s", package, version_range, count, error)
            raise VersionNotFound(package, str(version_range), self._highest(self._parse_all(candidates)))
        return resolved

    def pick(
        self, version_range: VersionRange, candidates: List[str]
    ) -> Tuple[Optional[str], int, Optional[str]]:
        """Apply range rules to select a version.

        Returns:
            Tuple of (resolved_version, candidate_count, error_message)
        """
        parsed = self._parse_all(candidates)
        if not parsed:
            return None, len(candidates), "No versions available"

        if version_range.kind == RangeKind.LATEST:
            return self._pick_latest(parsed), len(candidates), None
        if version_range.kind == RangeKind.EXACT:
            return self._pick_exact(str(version_range.version), parsed, candidates)

        base = semantic_version.Version(str(version_range.version))
        allow_prerelease = not self.prefer_stable or bool(base.prerelease)
        matching = [
            ver for ver in parsed
            if ver >= base
            and (allow_prerelease or not ver.prerelease)
            and self._within(version_range.kind, base, ver)
        ]
        if not matching:
            return None, len(candidates), f"No versions match spec '{version_range}'"
        best = max(matching)
        return parsed[best], len(candidates), None

    @staticmethod
    def _within(kind: RangeKind, base: semantic_version.Version, ver: semantic_version.Version) -> bool:
        """Upper-bound check for caret and tilde ranges."""
        if ver.major != base.major:
            return False
        if kind == RangeKind.CARET and base.major != 0:
            return True
        # Tilde always pins the minor; caret pins it for 0.x.
        return ver.minor == base.minor

    @staticmethod
    def _parse_all(candidates: List[str]) -> Dict[semantic_version.Version, str]:
        """Map parsed versions to their published spelling, skipping invalid ones."""
        parsed: Dict[semantic_version.Version, str] = {}
        for raw in candidates:
            try:
                parsed[semantic_version.Version(raw)] = raw
            except ValueError:
                continue
        return parsed

    @staticmethod
    def _highest(parsed: Dict[semantic_version.Version, str]) -> Optional[str]:
        if not parsed:
            return None
        return parsed[max(parsed)]

    def _pick_latest(self, parsed: Dict[semantic_version.Version, str]) -> Optional[str]:
        """Highest published version; stable first when ``prefer_stable`` is set."""
        if self.prefer_stable:
            stable = [ver for ver in parsed if not ver.prerelease]
            if stable:
                return parsed[max(stable)]
        return self._highest(parsed)

    @staticmethod
    def _pick_exact(
        version: str, parsed: Dict[semantic_version.Version, str], candidates: List[str]
    ) -> Tuple[Optional[str], int, Optional[str]]:
        """Check if the exact version is published."""
        if version in candidates:
            return version, len(candidates), None
        wanted = semantic_version.Version(version)
        for ver, raw in parsed.items():
            if ver == wanted:
                return raw, len(candidates), None
        return None, len(candidates), f"Version {version} not found"
