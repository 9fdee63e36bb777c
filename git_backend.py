#!/usr/bin/env python3
"""git / git-lfs subprocess backend."""

from __future__ import annotations

import os
import subprocess
import tempfile
from typing import Dict, List, Optional

from capabilities import Credentials, GitBackend
from errors import GitCommandError
from logging_utils import Logger
from security import SecurityValidator

ASKPASS_USERNAME_VAR = "BONJOUR_GIT_USERNAME"
ASKPASS_PASSWORD_VAR = "BONJOUR_GIT_PASSWORD"


class GitCli(GitBackend):
    """Runs git in a subprocess, never attached to a terminal.

    Credentials reach git through a temporary GIT_ASKPASS helper that
    echoes them from the child environment, so they never appear on a
    command line or on disk.
    """

    def __init__(self, timeout_s: int = 1800) -> None:
        self.timeout_s = timeout_s
        self._lfs_available: Optional[bool] = None

    @staticmethod
    def _create_askpass_script() -> str:
        """Create a temporary askpass script for credential injection."""
        fd, path = tempfile.mkstemp(prefix="bonjour_askpass_", text=True)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as script:
                script.write("#!/bin/sh\n")
                script.write("case \"$1\" in\n")
                script.write(f"  *Username*) echo \"${ASKPASS_USERNAME_VAR}\" ;;\n")
                script.write(f"  *Password*) echo \"${ASKPASS_PASSWORD_VAR}\" ;;\n")
                script.write("  *) exit 1 ;;\n")
                script.write("esac\n")
            os.chmod(path, 0o700)
        except OSError:
            os.unlink(path)
            raise
        return path

    @staticmethod
    def _cleanup_askpass_script(path: Optional[str]) -> None:
        if not path:
            return
        try:
            if os.path.exists(path):
                os.remove(path)
        except OSError as error:
            Logger.warn(f"failed to clean up temporary credential helper: {error}")

    def _build_env(self, credentials: Optional[Credentials], askpass: Optional[str]) -> Dict[str, str]:
        env = os.environ.copy()
        env["GIT_TERMINAL_PROMPT"] = "0"
        env.setdefault("GIT_SSH_COMMAND", "ssh -o BatchMode=yes")
        if credentials and askpass:
            username, password = credentials
            env.update(
                {
                    "GIT_ASKPASS": askpass,
                    ASKPASS_USERNAME_VAR: username,
                    ASKPASS_PASSWORD_VAR: password,
                }
            )
        return env

    def _run(
        self,
        args: List[str],
        cwd: Optional[str] = None,
        credentials: Optional[Credentials] = None,
    ) -> str:
        label = " ".join(args[:3])
        askpass: Optional[str] = None
        try:
            if credentials:
                askpass = self._create_askpass_script()
            result = subprocess.run(
                args,
                cwd=cwd,
                check=True,
                capture_output=True,
                text=True,
                timeout=self.timeout_s,
                env=self._build_env(credentials, askpass),
                stdin=subprocess.DEVNULL,
            )
            return result.stdout or ""
        except subprocess.TimeoutExpired:
            Logger.security_event("GIT_TIMEOUT", f"{label} timed out")
            raise GitCommandError(label, timed_out=True) from None
        except subprocess.CalledProcessError as e:
            Logger.security_event("GIT_FAILED", f"{label} exited {e.returncode}")
            output = SecurityValidator.sanitize_for_logging(e.stderr or e.stdout or "")
            raise GitCommandError(label, output) from None
        except FileNotFoundError:
            raise GitCommandError(label, "git executable not found") from None
        finally:
            self._cleanup_askpass_script(askpass)

    def clone_mirror(
        self, source_url: str, dest_path: str, credentials: Optional[Credentials] = None
    ) -> None:
        self._run(["git", "clone", "--mirror", source_url, dest_path], credentials=credentials)

    def push_mirror(
        self, repo_path: str, dest_url: str, credentials: Optional[Credentials] = None
    ) -> None:
        self._run(["git", "push", "--mirror", dest_url], cwd=repo_path, credentials=credentials)

    def add_remote(self, repo_path: str, name: str, url: str) -> None:
        self._run(["git", "remote", "add", name, url], cwd=repo_path)

    def lfs_available(self) -> bool:
        if self._lfs_available is None:
            try:
                self._run(["git", "lfs", "version"])
                self._lfs_available = True
            except GitCommandError:
                Logger.warn("git-lfs not installed; LFS objects will not be transferred")
                self._lfs_available = False
        return self._lfs_available

    def has_lfs_objects(self, repo_path: str) -> bool:
        """True when any ref tracks LFS files.

        Raises GitCommandError when git-lfs is installed but the listing
        fails; without git-lfs the answer is always False.
        """
        if not self.lfs_available():
            return False
        output = self._run(
            ["git", "lfs", "ls-files", "--all", "--name-only"], cwd=repo_path
        )
        return bool(output.strip())

    def transfer_lfs_objects(
        self,
        repo_path: str,
        source_remote: str,
        dest_remote: str,
        source_credentials: Optional[Credentials] = None,
        dest_credentials: Optional[Credentials] = None,
    ) -> None:
        self._run(
            ["git", "lfs", "fetch", "--all", source_remote],
            cwd=repo_path,
            credentials=source_credentials,
        )
        self._run(
            ["git", "lfs", "push", "--all", dest_remote],
            cwd=repo_path,
            credentials=dest_credentials,
        )
