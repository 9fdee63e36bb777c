#!/usr/bin/env python3
"""Configuration dataclasses for bonjour-gitlab."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CloneMethod(Enum):
    """Enumeration for git clone/push methods."""
    HTTPS = "https"
    SSH = "ssh"


class SyncMode(Enum):
    """How repositories are selected for mirroring."""
    INTERACTIVE = "interactive"
    BATCH = "batch"


class LfsFailurePolicy(Enum):
    """What a failed LFS object transfer does to the repository outcome."""
    FAIL = "fail"          # stop before pushing refs
    CONTINUE = "continue"  # push refs, then report the repository as failed
    IGNORE = "ignore"      # push refs, report mirrored with a warning


class VisibilityOverride(Enum):
    """Destination visibility; PRESERVE keeps the source repository's."""
    PRESERVE = "preserve"
    PRIVATE = "private"
    PUBLIC = "public"
    INTERNAL = "internal"


@dataclass
class GitHubConfig:
    """GitHub (source) configuration."""
    api_url: str
    token: str
    skip_archived: bool = False
    skip_forks: bool = False
    clone_method: CloneMethod = CloneMethod.HTTPS


@dataclass
class GitLabConfig:
    """GitLab (destination) configuration."""
    url: str
    token: str
    namespace: Optional[str] = None
    push_method: CloneMethod = CloneMethod.HTTPS
    retry_delay_s: float = 3.0
    wait: bool = True


@dataclass
class TransferConfig:
    """Git transfer configuration."""
    workspace_dir: Optional[str]
    lfs_policy: LfsFailurePolicy = LfsFailurePolicy.CONTINUE
    git_timeout_s: int = 1800


@dataclass
class SyncBehaviorConfig:
    """Sync behavior configuration."""
    mode: Optional[SyncMode]  # None: interactive when a terminal is attached
    dry_run: bool = False
    exclude: Optional[str] = None
    visibility: VisibilityOverride = VisibilityOverride.PRESERVE
    strict: bool = False
    summary_json: Optional[str] = None


@dataclass
class Config:
    """Main configuration for GitHub-to-GitLab mirroring."""
    github: GitHubConfig
    gitlab: GitLabConfig
    transfer: TransferConfig
    behavior: SyncBehaviorConfig
