"""Lock file management."""

from .manager import LockFile, LockMode, LockStatus

__all__ = ["LockFile", "LockMode", "LockStatus"]
