#!/usr/bin/env python3
"""Capability interfaces the orchestrator and transfer depend on.

Any hosting backend can be substituted by implementing these; the
GitHub/GitLab adapters and the git subprocess backend are the shipped
implementations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional, Tuple

from models import RepositoryRecord, Visibility

# (username, password) handed to git through GIT_ASKPASS
Credentials = Tuple[str, str]


class CreateOutcome(Enum):
    CREATED = "created"
    ALREADY_EXISTS = "already exists"


class RepositorySource(ABC):
    """Lists repositories owned by an authenticated identity."""

    def connect(self) -> None:
        """Open the API client. Failures raise FatalSyncError."""

    @abstractmethod
    def resolve_identity(self) -> str:
        """Return the login of the authenticated account.

        Raises FatalSyncError when the identity cannot be resolved.
        """

    @abstractmethod
    def list_repositories(self, identity: str) -> List[RepositoryRecord]:
        pass

    @abstractmethod
    def clone_url(self, name: str) -> str:
        pass

    def git_credentials(self) -> Optional[Credentials]:
        return None


class RepositoryDestination(ABC):
    """Creates repositories on the mirror host."""

    def connect(self) -> None:
        """Authenticate and resolve the target namespace. Failures raise FatalSyncError."""

    @abstractmethod
    def create_repository(self, name: str, visibility: Visibility) -> CreateOutcome:
        """Ensure ``name`` exists; raises PublishError on anything but success
        or an existing repository."""

    @abstractmethod
    def push_url(self, name: str) -> str:
        pass

    def git_credentials(self) -> Optional[Credentials]:
        return None


class GitBackend(ABC):
    """Content transfer primitives. Failures raise GitCommandError."""

    @abstractmethod
    def clone_mirror(
        self, source_url: str, dest_path: str, credentials: Optional[Credentials] = None
    ) -> None:
        pass

    @abstractmethod
    def push_mirror(
        self, repo_path: str, dest_url: str, credentials: Optional[Credentials] = None
    ) -> None:
        pass

    @abstractmethod
    def add_remote(self, repo_path: str, name: str, url: str) -> None:
        pass

    @abstractmethod
    def has_lfs_objects(self, repo_path: str) -> bool:
        pass

    @abstractmethod
    def transfer_lfs_objects(
        self,
        repo_path: str,
        source_remote: str,
        dest_remote: str,
        source_credentials: Optional[Credentials] = None,
        dest_credentials: Optional[Credentials] = None,
    ) -> None:
        pass
