#!/usr/bin/env python3
"""GitHub API wrapper for listing the repositories to mirror."""

from __future__ import annotations

from typing import List, Optional
from urllib.parse import urlparse

import github
import requests

from capabilities import Credentials, RepositorySource
from config import CloneMethod, GitHubConfig
from errors import EXIT_AUTH_ERROR, EXIT_GITHUB_ERROR, FatalSyncError
from logging_utils import Logger
from models import RepositoryRecord
from utils import RateLimiter, normalize_visibility

PUBLIC_API_URL = "https://api.github.com"


class GitHubSource(RepositorySource):
    """Wrapper around the GitHub API to enumerate owned repositories."""

    def __init__(self, config: GitHubConfig) -> None:
        self.config = config
        self.api_url = config.api_url.rstrip("/")
        self.api: Optional[github.Github] = None
        self.identity: Optional[str] = None
        self.rate_limiter = RateLimiter(max_requests_per_minute=50)

    def connect(self) -> None:
        Logger.info(f"init github API: {self.api_url}")
        self._preflight_token()
        auth = github.Auth.Token(self.config.token)
        if self.api_url != PUBLIC_API_URL:
            self.api = github.Github(base_url=self.api_url, auth=auth)
        else:
            self.api = github.Github(auth=auth)

    def _get_api_headers(self) -> dict:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self.config.token}",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _preflight_token(self) -> None:
        """Check the token works and can see private repositories."""
        try:
            self.rate_limiter.wait_if_needed("GitHub API")
            response = requests.get(
                f"{self.api_url}/user", headers=self._get_api_headers(), timeout=30
            )
        except requests.RequestException as e:
            raise FatalSyncError(
                f"failed to contact github api: {e}", EXIT_GITHUB_ERROR
            ) from e

        if response.status_code == 401:
            raise FatalSyncError(
                "unauthorized (401): github token invalid or expired", EXIT_AUTH_ERROR
            )
        if response.status_code == 403:
            raise FatalSyncError(
                "forbidden (403): github token lacks permission to read the user",
                EXIT_AUTH_ERROR,
            )
        if response.status_code != 200:
            Logger.warn(f"unexpected response checking github token: {response.status_code}")
            return

        # Classic tokens report scopes; fine-grained tokens do not
        scopes = response.headers.get("X-OAuth-Scopes")
        if scopes is None:
            Logger.debug("github token scopes not reported (fine-grained token)")
            return
        granted = {s.strip() for s in scopes.split(",") if s.strip()}
        Logger.debug(f"github token scopes: {', '.join(sorted(granted)) or 'none'}")
        if "repo" not in granted:
            Logger.warn(
                "github token has no 'repo' scope; private repositories "
                "will not be listed or cloned"
            )

    def resolve_identity(self) -> str:
        if self.api is None:
            self.connect()
        try:
            self.rate_limiter.wait_if_needed("GitHub API")
            login = self.api.get_user().login
        except github.BadCredentialsException as e:
            raise FatalSyncError(
                "authentication failed (github): invalid token", EXIT_AUTH_ERROR
            ) from e
        except github.GithubException as e:
            raise FatalSyncError(f"github error: {e}", EXIT_GITHUB_ERROR) from e
        except requests.RequestException as e:
            raise FatalSyncError(
                f"failed to contact github api: {e}", EXIT_GITHUB_ERROR
            ) from e
        if not login:
            raise FatalSyncError("github returned an empty login", EXIT_GITHUB_ERROR)
        self.identity = login
        Logger.info(f"github user: {login}")
        return login

    def list_repositories(self, identity: str) -> List[RepositoryRecord]:
        if self.api is None:
            raise FatalSyncError("github API not initialized", EXIT_GITHUB_ERROR)

        Logger.info(f"discovering repositories owned by: {identity}")
        records: List[RepositoryRecord] = []
        try:
            self.rate_limiter.wait_if_needed("GitHub API")
            if identity.lower() == (self.identity or "").lower():
                # Authenticated view includes private repositories
                repos = self.api.get_user().get_repos(type="owner")
            else:
                repos = self.api.get_user(identity).get_repos(type="owner")

            for repo in repos:
                record = RepositoryRecord(
                    name=(repo.name or "").lower(),
                    visibility=normalize_visibility(
                        getattr(repo, "visibility", None), bool(repo.private)
                    ),
                    archived=bool(repo.archived),
                    fork=bool(repo.fork),
                )
                if self.config.skip_archived and record.archived:
                    Logger.debug(f"skipping archived: {record.name}")
                    continue
                if self.config.skip_forks and record.fork:
                    Logger.debug(f"skipping fork: {record.name}")
                    continue
                records.append(record)
                Logger.debug(f"found: {record.name} ({record.visibility.value})")
        except github.GithubException as e:
            raise FatalSyncError(
                f"failed to list repositories for '{identity}': {e}", EXIT_GITHUB_ERROR
            ) from e
        except requests.RequestException as e:
            raise FatalSyncError(
                f"failed to contact github api: {e}", EXIT_GITHUB_ERROR
            ) from e

        Logger.info(f"found {len(records)} repositories to process")
        return records

    def _git_base_url(self) -> str:
        """Return base URL for Git operations derived from API endpoint."""
        parsed = urlparse(self.api_url)
        if parsed.netloc == "api.github.com":
            return "https://github.com"

        base_path = parsed.path.rstrip("/")
        if base_path.endswith("/api/v3"):
            base_path = base_path[: -len("/api/v3")]
        base = f"{parsed.scheme}://{parsed.netloc}"
        if base_path:
            base += base_path
        return base

    def _git_hostname(self) -> str:
        parsed = urlparse(self.api_url)
        if parsed.netloc == "api.github.com":
            return "github.com"
        return parsed.netloc

    def clone_url(self, name: str) -> str:
        if not self.identity:
            raise RuntimeError("github identity has not been resolved")
        if self.config.clone_method == CloneMethod.SSH:
            return f"git@{self._git_hostname()}:{self.identity}/{name}.git"
        return f"{self._git_base_url()}/{self.identity}/{name}.git"

    def git_credentials(self) -> Optional[Credentials]:
        if self.config.clone_method == CloneMethod.SSH:
            return None
        return ("x-access-token", self.config.token)
