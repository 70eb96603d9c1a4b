"""Error kinds raised while resolving, fetching and locking modules.

Every error carries the offending specifier so the CLI can report it without
extra context.
"""

from __future__ import annotations

from typing import Optional


class ModgateError(Exception):
    """Base class for all resolution errors."""

    def __init__(self, specifier: str, message: str):
        super().__init__(message)
        self.specifier = specifier


class ConfigError(ModgateError):
    """A configuration or lock file is malformed."""

    def __init__(self, path: str, reason: str):
        super().__init__(path, f"Invalid config file '{path}': {reason}")
        self.reason = reason


class UnresolvedSpecifier(ModgateError):
    """A specifier cannot be turned into an exact module location."""

    def __init__(self, specifier: str, reason: str):
        super().__init__(specifier, f"Unable to resolve '{specifier}': {reason}")
        self.reason = reason


class UnmappedSpecifier(ModgateError):
    """A bare specifier has no entry in the import map or its scopes."""

    def __init__(self, specifier: str, referrer: Optional[str] = None):
        msg = f"Import '{specifier}' is not a relative path and is not in the import map"
        if referrer:
            msg += f" (imported from '{referrer}')"
        super().__init__(specifier, msg)
        self.referrer = referrer


class VersionNotFound(ModgateError):
    """No published version satisfies a version range."""

    def __init__(self, specifier: str, requested: str, latest: Optional[str]):
        available = latest if latest else "none"
        super().__init__(
            specifier,
            f"Could not find version of '{specifier}' that matches '{requested}' "
            f"(expected {requested}, latest available: {available})",
        )
        self.requested = requested
        self.latest = latest


class NotCached(ModgateError):
    """Cached-only mode was requested and the entry is not in the cache."""

    def __init__(self, specifier: str):
        super().__init__(
            specifier,
            f"Specifier not found in cache: '{specifier}', --cached-only is specified",
        )


class IntegrityMismatch(ModgateError):
    """Fetched content does not hash to the value recorded in the lock file."""

    def __init__(self, specifier: str, expected: str, actual: str, lock_path: Optional[str] = None):
        where = f" in '{lock_path}'" if lock_path else ""
        super().__init__(
            specifier,
            f"Integrity check failed for '{specifier}'{where}: "
            f"expected {expected}, actual {actual}",
        )
        self.expected = expected
        self.actual = actual


class UntrackedDependency(ModgateError):
    """A frozen lock file has no entry for the specifier."""

    def __init__(self, specifier: str, lock_path: Optional[str] = None):
        where = f" '{lock_path}'" if lock_path else ""
        super().__init__(
            specifier,
            f"The lock file{where} is frozen and has no entry for '{specifier}'",
        )


class FetchError(ModgateError):
    """Network retrieval failed."""

    def __init__(self, specifier: str, reason: str, status: Optional[int] = None):
        super().__init__(specifier, f"Failed to fetch '{specifier}': {reason}")
        self.reason = reason
        self.status = status


class FetchTimeout(FetchError):
    """Network retrieval did not complete within the configured timeout."""

    def __init__(self, specifier: str, timeout: float):
        super().__init__(specifier, f"timed out after {timeout} seconds")
        self.timeout = timeout
