"""
Safety net: backup, atomic replace and restore for the target file.

The target is only ever replaced with ``os.replace`` from a temp file in
the same directory, so a crash leaves either the old or the new content.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import tempfile

from ..errors import PatchIOError

logger = logging.getLogger(__name__)

DEFAULT_BACKUP_SUFFIX = ".backup"


def backup_path(target: str, suffix: str = DEFAULT_BACKUP_SUFFIX) -> str:
    return target + suffix


def create_backup(target: str, backup: str) -> bool:
    """Copy *target* to *backup* unless a backup already exists.

    The first backup holds the pristine file and is never overwritten.  It
    goes through a temp file, so a failed copy leaves no backup behind.
    Returns True when a new backup was written.
    """
    if os.path.exists(backup):
        logger.debug("[Safety] Keeping existing backup %s", backup)
        return False
    try:
        with open(target, "rb") as f:
            content = f.read()
        _replace_atomically(backup, content, mode_from=target)
        shutil.copystat(target, backup)
    except OSError as exc:
        logger.error("[Safety] Backup of %s failed: %s", target, exc)
        raise PatchIOError(f"Cannot create backup {backup}: {exc}") from exc
    logger.info("[Safety] Backup written to %s", backup)
    return True


def _replace_atomically(target: str, content: bytes, mode_from: str | None = None) -> None:
    abs_path = os.path.abspath(target)
    try:
        mode = stat.S_IMODE(os.stat(mode_from or abs_path).st_mode)
    except FileNotFoundError:
        mode = None

    fd, tmp_path = tempfile.mkstemp(
        prefix="." + os.path.basename(abs_path) + ".",
        suffix=".tmp",
        dir=os.path.dirname(abs_path),
    )
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        if mode is not None:
            os.chmod(tmp_path, mode)
        os.replace(tmp_path, abs_path)
    except BaseException:
        # Clean up temp file on failure
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def atomic_write(target: str, content: bytes, backup: str | None = None) -> None:
    """
    Replace *target* with *content*, keeping file mode.

    Parameters
    ----------
    target:
        File to replace.
    content:
        New bytes.
    backup:
        When given, a backup of the current file is made first (once).

    Raises
    ------
    PatchIOError
        On any filesystem failure; the target is left untouched.
    """
    if backup is not None:
        create_backup(target, backup)
    try:
        _replace_atomically(target, content)
    except OSError as exc:
        logger.error("[Safety] Write to %s failed: %s", target, exc)
        raise PatchIOError(f"Cannot write {target}: {exc}") from exc
    logger.info("[Safety] Wrote %d bytes to %s", len(content), target)


def restore_backup(target: str, backup: str) -> None:
    """Atomically put the backup bytes back in place of *target*."""
    if not os.path.isfile(backup):
        raise PatchIOError(f"No backup found at {backup}")
    try:
        with open(backup, "rb") as f:
            content = f.read()
        _replace_atomically(target, content)
    except OSError as exc:
        raise PatchIOError(f"Cannot restore {target} from {backup}: {exc}") from exc
    logger.info("[Safety] Restored %s from %s", target, backup)
