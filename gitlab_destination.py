#!/usr/bin/env python3
"""GitLab API wrapper for creating mirror projects."""

from __future__ import annotations

import time
from typing import Optional
from urllib.parse import quote, urlparse

import gitlab
import requests

from capabilities import CreateOutcome, Credentials, RepositoryDestination
from config import CloneMethod, GitLabConfig
from errors import EXIT_AUTH_ERROR, EXIT_GITLAB_ERROR, FatalSyncError, PublishError
from logging_utils import Logger
from models import Visibility
from utils import RateLimiter


class GitLabDestination(RepositoryDestination):
    """Wrapper around the GitLab API to create projects in a namespace."""

    def __init__(self, config: GitLabConfig) -> None:
        self.config = config
        self.url = config.url.rstrip("/")
        self.api: Optional[gitlab.Gitlab] = None
        self.namespace_path: Optional[str] = None
        self.namespace_id: Optional[int] = None
        self.rate_limiter = RateLimiter(
            max_requests_per_minute=30
        )  # Conservative GitLab rate limit

    def connect(self) -> None:
        Logger.info(f"init gitlab API: {self.url}")
        try:
            self.api = gitlab.Gitlab(url=self.url, private_token=self.config.token)
            self.rate_limiter.wait_if_needed("GitLab API")
            self.api.auth()
        except gitlab.exceptions.GitlabAuthenticationError as e:
            raise FatalSyncError(f"authentication error (gitlab): {e}", EXIT_AUTH_ERROR) from e
        except (gitlab.exceptions.GitlabError, requests.RequestException) as e:
            raise FatalSyncError(
                f"failed to initialize gitlab API: {e}", EXIT_GITLAB_ERROR
            ) from e

        username = getattr(self.api.user, "username", None)
        Logger.info(f"gitlab user: {username}")
        self._resolve_namespace(username)

    def _resolve_namespace(self, username: Optional[str]) -> None:
        """Target the configured namespace, or the user's own when none is given."""
        if not self.config.namespace or self.config.namespace == username:
            if not username:
                raise FatalSyncError("gitlab returned no username", EXIT_GITLAB_ERROR)
            # projects.create defaults to the user's namespace
            self.namespace_path = username
            self.namespace_id = None
            return

        try:
            self.rate_limiter.wait_if_needed("GitLab API")
            namespace = self.api.namespaces.get(self.config.namespace)
        except gitlab.exceptions.GitlabGetError as e:
            raise FatalSyncError(
                f"gitlab namespace '{self.config.namespace}' not found or not "
                f"accessible: {e}",
                EXIT_GITLAB_ERROR,
            ) from e
        self.namespace_path = getattr(namespace, "full_path", self.config.namespace)
        self.namespace_id = namespace.id
        Logger.debug(f"gitlab namespace: {self.namespace_path} (id {self.namespace_id})")

    def _project_path(self, name: str) -> str:
        if self.namespace_path is None:
            raise RuntimeError("gitlab namespace has not been resolved")
        return f"{self.namespace_path}/{name}"

    def project_exists(self, name: str) -> bool:
        try:
            self.rate_limiter.wait_if_needed("GitLab API")
            self.api.projects.get(self._project_path(name))
            return True
        except gitlab.exceptions.GitlabGetError as e:
            if e.response_code == 404:
                return False
            raise

    @staticmethod
    def _is_already_taken(error: gitlab.exceptions.GitlabCreateError) -> bool:
        return error.response_code in (400, 409) and "already been taken" in str(error)

    def create_repository(self, name: str, visibility: Visibility) -> CreateOutcome:
        if self.api is None:
            raise PublishError("gitlab API not initialized")

        path = self._project_path(name)
        try:
            if self.project_exists(name):
                Logger.debug(f"project already on GitLab: {path}")
                return CreateOutcome.ALREADY_EXISTS
        except (gitlab.exceptions.GitlabError, requests.RequestException) as e:
            raise PublishError(f"failed to look up project '{path}': {e}") from e

        data = {"name": name, "path": name, "visibility": visibility.value}
        if self.namespace_id is not None:
            data["namespace_id"] = self.namespace_id
        try:
            self.rate_limiter.wait_if_needed("GitLab API")
            self.api.projects.create(data)
        except gitlab.exceptions.GitlabCreateError as e:
            if self._is_already_taken(e):
                Logger.debug(f"project already on GitLab: {path}")
                return CreateOutcome.ALREADY_EXISTS
            raise PublishError(f"failed to create project '{path}': {e}") from e
        except (gitlab.exceptions.GitlabError, requests.RequestException) as e:
            raise PublishError(f"failed to create project '{path}': {e}") from e

        Logger.info(f"created project: {path} ({visibility.value})")
        if self.config.wait and not self.wait_until_available(name):
            raise PublishError(f"project '{path}' not accessible after creation")
        return CreateOutcome.CREATED

    def wait_until_available(self, name: str, attempts: int = 10) -> bool:
        """Wait until the project is visible via REST (eventual consistency)."""
        path = self._project_path(name)
        url = f"{self.url}/api/v4/projects/{quote(path, safe='')}"
        headers = {"PRIVATE-TOKEN": self.config.token}
        for i in range(1, attempts + 1):
            try:
                self.rate_limiter.wait_if_needed("GitLab API")
                r = requests.get(url, headers=headers, timeout=15)
                if r.status_code == 200:
                    Logger.debug(f"project '{path}' verified as accessible")
                    return True
                if r.status_code == 404:
                    Logger.debug(
                        f"project '{path}' not yet visible (attempt {i}/{attempts})"
                    )
                else:
                    Logger.warn(
                        f"unexpected status {r.status_code} when checking project '{path}'"
                    )
            except requests.RequestException as e:
                Logger.debug(f"request error checking project '{path}': {e}")
            if i < attempts:
                time.sleep(self.config.retry_delay_s)

        Logger.error(f"project '{path}' not accessible after {attempts} attempts")
        return False

    def push_url(self, name: str) -> str:
        path = self._project_path(name)
        if self.config.push_method == CloneMethod.SSH:
            return f"git@{urlparse(self.url).hostname}:{path}.git"
        return f"{self.url}/{path}.git"

    def git_credentials(self) -> Optional[Credentials]:
        if self.config.push_method == CloneMethod.SSH:
            return None
        return ("oauth2", self.config.token)
