"""Lock file: resolved specifier to content integrity hash.

On disk::

    {
      "version": "1",
      "specifiers": {"jsr:@x/y@^1.2.0": "1.3.0"},
      "remote": {"jsr:@x/y@1.3.0": "<sha256 hex>"}
    }

``remote`` holds the integrity hashes; ``specifiers`` pins each requested
range to the version it resolved to, so later runs skip registry lookups.
All mutations happen under one mutex and the file is only rewritten by
``save()``.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from enum import Enum
from typing import Dict, Optional

from constants import Constants
from errors import ConfigError, IntegrityMismatch, UntrackedDependency
from common.fs_utils import atomic_write_bytes, integrity_hash

logger = logging.getLogger(__name__)


class LockMode(Enum):
    """How unseen and changed entries are treated."""
    ADDITIVE = "additive"  # new entries are appended
    FROZEN = "frozen"  # any missing entry is an error, the file is never written
    WRITE = "write"  # entries are (re)written from this run's content


class LockStatus(Enum):
    """Per-entry state within one run."""
    UNLOCKED = "unlocked"
    LOCKED = "locked"
    FATAL = "fatal"


class LockFile:
    """In-memory lock file with verify/write operations."""

    def __init__(
        self,
        path: Optional[str] = None,
        mode: LockMode = LockMode.ADDITIVE,
        remote: Optional[Dict[str, str]] = None,
        specifiers: Optional[Dict[str, str]] = None,
    ):
        self._path = os.path.abspath(path or Constants.LOCK_FILE)
        self._mode = mode
        self._remote: Dict[str, str] = dict(remote or {})
        self._specifiers: Dict[str, str] = dict(specifiers or {})
        self._status: Dict[str, LockStatus] = {
            key: LockStatus.LOCKED for key in self._remote
        }
        self._mutex = threading.Lock()
        self._changed = mode == LockMode.WRITE

    @classmethod
    def load(cls, path: str, mode: LockMode = LockMode.ADDITIVE) -> "LockFile":
        """Read ``path`` if it exists.

        In write mode the existing content is not read: the run regenerates
        the lock file from what it actually fetches.

        Raises:
            ConfigError: When the file exists but is not a valid lock file.
        """
        if mode == LockMode.WRITE or not os.path.exists(path):
            logger.debug("Starting empty lock file %s (%s mode)", path, mode.value)
            return cls(path, mode)
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except json.JSONDecodeError as exc:
            raise ConfigError(path, f"invalid JSON: {exc}") from exc
        except OSError as exc:
            raise ConfigError(path, str(exc)) from exc
        if not isinstance(data, dict):
            raise ConfigError(path, "lock file must be a JSON object")
        version = data.get("version")
        if version is not None and str(version) != Constants.LOCK_FILE_VERSION:
            raise ConfigError(path, f"unsupported lock file version '{version}'")
        remote = data.get("remote") or {}
        specifiers = data.get("specifiers") or {}
        for section_name, section in (("remote", remote), ("specifiers", specifiers)):
            if not isinstance(section, dict) or not all(
                isinstance(k, str) and isinstance(v, str) for k, v in section.items()
            ):
                raise ConfigError(path, f"'{section_name}' must map strings to strings")
        return cls(path, mode, remote=remote, specifiers=specifiers)

    @property
    def path(self) -> str:
        return self._path

    @property
    def mode(self) -> LockMode:
        return self._mode

    @property
    def changed(self) -> bool:
        """True when entries were added or replaced since loading."""
        return self._changed

    def __contains__(self, specifier: str) -> bool:
        return specifier in self._remote

    def __len__(self) -> int:
        return len(self._remote)

    def get(self, specifier: str) -> Optional[str]:
        """Recorded hash for ``specifier`` or None."""
        return self._remote.get(specifier)

    def status(self, specifier: str) -> LockStatus:
        """Current state of ``specifier`` in this run."""
        return self._status.get(specifier, LockStatus.UNLOCKED)

    def verify(self, specifier: str, content: bytes) -> str:
        """Check ``content`` against the recorded hash and return the actual hash.

        Raises:
            IntegrityMismatch: The recorded hash differs. Fatal for the run.
            UntrackedDependency: No entry exists and the lock file is frozen.
        """
        actual = integrity_hash(content)
        with self._mutex:
            expected = self._remote.get(specifier)
            if expected is None:
                if self._mode == LockMode.FROZEN:
                    raise UntrackedDependency(specifier, self._path)
                self._remote[specifier] = actual
                self._status[specifier] = LockStatus.LOCKED
                self._changed = True
                logger.debug("Lock: added %s", specifier)
                return actual
            if expected != actual:
                self._status[specifier] = LockStatus.FATAL
                raise IntegrityMismatch(specifier, expected, actual, self._path)
            self._status[specifier] = LockStatus.LOCKED
            return actual

    def write(self, specifier: str, content: bytes) -> str:
        """Record the hash of ``content`` for ``specifier``, replacing any entry."""
        actual = integrity_hash(content)
        with self._mutex:
            if self._remote.get(specifier) != actual:
                self._remote[specifier] = actual
                self._changed = True
            self._status[specifier] = LockStatus.LOCKED
        return actual

    def check(self, specifier: str, content: bytes) -> str:
        """``write`` in write mode, ``verify`` otherwise."""
        if self._mode == LockMode.WRITE:
            return self.write(specifier, content)
        return self.verify(specifier, content)

    def pinned(self, requested: str) -> Optional[str]:
        """Version previously resolved for a requested range, if any."""
        if self._mode == LockMode.WRITE:
            return None
        return self._specifiers.get(requested)

    def pin(self, requested: str, version: str) -> None:
        """Record the version a requested range resolved to.

        Raises:
            UntrackedDependency: The lock file is frozen and has no pin.
        """
        with self._mutex:
            current = self._specifiers.get(requested)
            if current == version:
                return
            if self._mode == LockMode.FROZEN:
                raise UntrackedDependency(requested, self._path)
            self._specifiers[requested] = version
            self._changed = True

    def to_dict(self) -> Dict[str, object]:
        """Stable, diff-friendly representation."""
        return {
            "version": Constants.LOCK_FILE_VERSION,
            "specifiers": dict(sorted(self._specifiers.items())),
            "remote": dict(sorted(self._remote.items())),
        }

    def save(self) -> bool:
        """Persist the lock file if it changed. Never writes a frozen lock file.

        Returns:
            True when the file was written.
        """
        if self._mode == LockMode.FROZEN or not self._changed:
            return False
        with self._mutex:
            body = json.dumps(self.to_dict(), indent=2) + "\n"
            atomic_write_bytes(self._path, body.encode("utf-8"))
            self._changed = False
        logger.info("Wrote lock file %s (%d entries)", self._path, len(self._remote))
        return True
