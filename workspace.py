#!/usr/bin/env python3
"""Scratch workspace owned by a single run."""

from __future__ import annotations

import os
import shutil
import stat
import sys
import tempfile
from contextlib import contextmanager
from typing import Iterator, Optional

from errors import EXIT_WORKSPACE_ERROR, FatalSyncError
from logging_utils import Logger
from security import SecurityValidator

WORKSPACE_PREFIX = "bonjour-gitlab-"


def _make_writable_and_retry(func, path, _exc) -> None:
    """rmtree error handler: git pack files and their directories can be read-only."""
    os.chmod(os.path.dirname(path), stat.S_IRWXU)
    if os.path.lexists(path) and not os.path.islink(path):
        os.chmod(path, stat.S_IRWXU)
    func(path)


def remove_tree(path: str) -> bool:
    """Remove ``path`` and everything below it. Returns False if anything survives."""
    if not os.path.exists(path):
        return True
    try:
        if sys.version_info >= (3, 12):
            shutil.rmtree(path, onexc=_make_writable_and_retry)
        else:
            shutil.rmtree(path, onerror=_make_writable_and_retry)
    except OSError as e:
        Logger.security_event("CLEANUP_FAILED", f"failed to remove {path}: {e}")
        Logger.warn(f"failed to clean up temporary directory {path}: {e}")
        return False
    Logger.security_event("CLEANUP_SUCCESS", f"removed {path}")
    return True


class TransferWorkspace:
    """Uniquely named scratch directory, removed on every exit path.

    Used as a context manager. Per-repository subdirectories come from
    :meth:`repository_dir` and are removed as soon as that repository's
    processing ends, so at most one repository's data is on disk at once.
    """

    def __init__(self, base_dir: Optional[str] = None) -> None:
        self.base_dir = base_dir
        self.root: Optional[str] = None
        self._active: set = set()

    def __enter__(self) -> "TransferWorkspace":
        self.create()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.remove()

    def create(self) -> str:
        try:
            if self.base_dir:
                os.makedirs(self.base_dir, mode=0o700, exist_ok=True)
            self.root = tempfile.mkdtemp(prefix=WORKSPACE_PREFIX, dir=self.base_dir)
            os.chmod(self.root, 0o700)
        except OSError as e:
            raise FatalSyncError(
                f"cannot create workspace under {self.base_dir or tempfile.gettempdir()}: {e}",
                EXIT_WORKSPACE_ERROR,
            ) from e
        Logger.debug(f"workspace: {self.root}")
        return self.root

    def remove(self) -> None:
        if self.root is None:
            return
        remove_tree(self.root)
        self.root = None
        self._active.clear()

    @contextmanager
    def repository_dir(self, name: str) -> Iterator[str]:
        """Yield an exclusively owned subdirectory for one repository."""
        if self.root is None:
            raise RuntimeError("workspace has not been created")
        validated = SecurityValidator.validate_repo_name(name)
        if validated in self._active:
            raise RuntimeError(f"workspace directory for '{validated}' is already in use")
        path = tempfile.mkdtemp(prefix=f"{validated}_", dir=self.root)
        os.chmod(path, 0o700)
        self._active.add(validated)
        try:
            yield path
        finally:
            self._active.discard(validated)
            remove_tree(path)
