#!/usr/bin/env python3
"""Mirror one repository: clone, LFS objects, push."""

from __future__ import annotations

import os
from typing import Optional

from capabilities import GitBackend, RepositoryDestination, RepositorySource
from config import LfsFailurePolicy
from errors import GitCommandError, TransferError, TransferErrorKind
from logging_utils import Logger
from models import RepositoryRecord
from security import SecurityValidator

DESTINATION_REMOTE = "destination"
SOURCE_REMOTE = "origin"


class MirrorTransfer:
    """Synchronizes the content of a single repository.

    Every step maps to one TransferErrorKind. No retries are made here;
    re-running the whole job is the retry mechanism, which is safe because
    a mirror push always converges on the source's state.
    """

    def __init__(
        self,
        source: RepositorySource,
        destination: RepositoryDestination,
        git: GitBackend,
        lfs_policy: LfsFailurePolicy = LfsFailurePolicy.CONTINUE,
    ) -> None:
        self.source = source
        self.destination = destination
        self.git = git
        self.lfs_policy = lfs_policy

    def transfer(self, record: RepositoryRecord, work_dir: str) -> Optional[str]:
        """Mirror ``record`` using ``work_dir`` as scratch space.

        Returns a warning for the result detail when an LFS failure was
        tolerated under LfsFailurePolicy.IGNORE, otherwise None. Raises
        TransferError when a step fails.
        """
        name = SecurityValidator.validate_repo_name(record.name)
        repo_path = os.path.join(work_dir, f"{name}.git")
        dest_url = self.destination.push_url(name)

        self._clone(name, repo_path)
        lfs_error = self._transfer_lfs(name, repo_path, dest_url)
        self._push(name, repo_path, dest_url)

        if lfs_error is None:
            return None
        if self.lfs_policy == LfsFailurePolicy.CONTINUE:
            # Refs are at the destination but large files may be missing
            raise lfs_error
        return f"refs pushed, {lfs_error}"

    def _clone(self, name: str, repo_path: str) -> None:
        Logger.info(f"cloning from GitHub: {name}")
        try:
            self.git.clone_mirror(
                self.source.clone_url(name),
                repo_path,
                credentials=self.source.git_credentials(),
            )
        except GitCommandError as e:
            raise TransferError(TransferErrorKind.CLONE_FAILED, str(e)) from e
        Logger.security_event("GIT_CLONE_SUCCESS", f"cloned repository {name}")

    def _transfer_lfs(
        self, name: str, repo_path: str, dest_url: str
    ) -> Optional[TransferError]:
        """Copy LFS objects; returns the error when the policy lets refs go ahead."""
        try:
            if not self.git.has_lfs_objects(repo_path):
                return None
            Logger.info(f"LFS detected in {name}, transferring LFS objects")
            self.git.add_remote(repo_path, DESTINATION_REMOTE, dest_url)
            self.git.transfer_lfs_objects(
                repo_path,
                SOURCE_REMOTE,
                DESTINATION_REMOTE,
                source_credentials=self.source.git_credentials(),
                dest_credentials=self.destination.git_credentials(),
            )
        except GitCommandError as e:
            error = TransferError(TransferErrorKind.LFS_FAILED, str(e))
            if self.lfs_policy == LfsFailurePolicy.FAIL:
                raise error from e
            Logger.warn(f"{name}: {error} (lfs policy: {self.lfs_policy.value})")
            return error
        return None

    def _push(self, name: str, repo_path: str, dest_url: str) -> None:
        Logger.info(f"pushing to GitLab: {name}")
        try:
            self.git.push_mirror(
                repo_path, dest_url, credentials=self.destination.git_credentials()
            )
        except GitCommandError as e:
            raise TransferError(TransferErrorKind.PUSH_FAILED, str(e)) from e
        Logger.security_event("GIT_PUSH_SUCCESS", f"pushed repository {name}")
