"""File helpers for publishing cache, vendor and lock files atomically."""
from __future__ import annotations

import hashlib
import os
import tempfile


def integrity_hash(content: bytes) -> str:
    """Hex sha256 digest used for cache addressing and lock file entries."""
    return hashlib.sha256(content).hexdigest()


def atomic_write_bytes(path: str, data: bytes) -> None:
    """Write ``data`` to ``path`` so readers see either the old or the new file.

    The bytes go to a temporary file in the same directory which is then
    renamed over the target; an interrupted write leaves only the temp file,
    which is removed.
    """
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=".tmp-", dir=directory)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise
