#!/usr/bin/env python3
"""Exit codes and exceptions for bonjour-gitlab."""

from __future__ import annotations

from enum import Enum
from typing import Optional

# Exit codes
EXIT_SUCCESS = 0
EXIT_EXECUTION_ERROR = 1
EXIT_MISSING_ARGUMENTS = 2
EXIT_PARTIAL_FAILURE = 3
EXIT_GITHUB_ERROR = 30
EXIT_GITLAB_ERROR = 31
EXIT_AUTH_ERROR = 40
EXIT_WORKSPACE_ERROR = 50
EXIT_INTERRUPTED = 130


class SyncError(Exception):
    """Base class for errors raised while mirroring."""


class FatalSyncError(SyncError):
    """Aborts the whole run; nothing downstream can proceed."""

    def __init__(self, message: str, exit_code: int = EXIT_EXECUTION_ERROR) -> None:
        super().__init__(message)
        self.exit_code = exit_code


class PublishError(SyncError):
    """The destination repository could not be created."""


class GitCommandError(SyncError):
    """A git or git-lfs command failed or timed out.

    ``output`` holds the sanitized stderr (or stdout) of the command.
    """

    def __init__(self, command: str, output: str = "", timed_out: bool = False) -> None:
        self.command = command
        self.output = output.strip()
        self.timed_out = timed_out
        if timed_out:
            message = f"{command}: timed out"
        elif self.output:
            message = f"{command}: {self.output.splitlines()[-1]}"
        else:
            message = f"{command}: failed"
        super().__init__(message)


class TransferErrorKind(Enum):
    CLONE_FAILED = "clone failed"
    LFS_FAILED = "lfs transfer failed"
    PUSH_FAILED = "push failed"


class TransferError(SyncError):
    """One step of a mirror transfer failed."""

    def __init__(self, kind: TransferErrorKind, detail: Optional[str] = None) -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(f"{kind.value}: {detail}" if detail else kind.value)


class RunInterrupted(BaseException):
    """Raised from the SIGTERM handler.

    Derives from BaseException so per-repository ``except Exception``
    handlers let it through, like KeyboardInterrupt.
    """

    def __init__(self, signum: int) -> None:
        super().__init__(f"received signal {signum}")
        self.signum = signum
