#!/usr/bin/env python3
"""Command line argument parsing and configuration building."""

from __future__ import annotations

import argparse
import os
import sys
from typing import List, Optional

from config import (CloneMethod, Config, GitHubConfig, GitLabConfig,
                    LfsFailurePolicy, SyncBehaviorConfig, SyncMode,
                    TransferConfig, VisibilityOverride)
from errors import EXIT_AUTH_ERROR, EXIT_MISSING_ARGUMENTS
from logging_utils import Logger
from security import SecurityValidator


def _create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        description="Mirror every repository you own on GitHub to GitLab",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s
  %(prog)s --batch --lfs-policy fail
  %(prog)s --batch --gl-namespace backups --visibility private
  %(prog)s --dry-run --exclude dotfiles
  %(prog)s --batch --no-color --summary-json /var/log/bonjour-gitlab/last.json
  %(prog)s --gh-api https://github.company.com/api/v3 \\
           --gl-url https://gitlab.company.com --push-method ssh
        """,
    )
    return parser


def _add_mode_arguments(parser: argparse.ArgumentParser) -> None:
    """Add run mode arguments; without either flag the terminal decides."""
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--batch",
        action="store_const",
        const=SyncMode.BATCH,
        dest="mode",
        help="Mirror every repository without asking",
    )
    group.add_argument(
        "--interactive",
        action="store_const",
        const=SyncMode.INTERACTIVE,
        dest="mode",
        help="Ask for each repository on the terminal (fails without one)",
    )


def _add_github_arguments(parser: argparse.ArgumentParser) -> None:
    """Add GitHub (source) arguments to parser."""
    parser.add_argument(
        "--gh-api",
        dest="gh_api_url",
        default="https://api.github.com",
        help="Base URL of the GitHub API",
    )
    parser.add_argument(
        "--gh-token",
        dest="gh_token",
        help="GitHub API token (or set GITHUB_TOKEN env var)",
    )
    parser.add_argument(
        "--skip-archived",
        action="store_true",
        dest="skip_archived",
        help="Do not mirror archived GitHub repositories",
    )
    parser.add_argument(
        "--skip-forks",
        action="store_true",
        dest="skip_forks",
        help="Do not mirror forks",
    )
    parser.add_argument(
        "--clone-method",
        dest="clone_method",
        choices=[method.value for method in CloneMethod],
        default=CloneMethod.HTTPS.value,
        help="Clone method for GitHub source: https or ssh (default: https)",
    )


def _add_gitlab_arguments(parser: argparse.ArgumentParser) -> None:
    """Add GitLab (destination) arguments to parser."""
    parser.add_argument(
        "--gl-url",
        dest="gl_url",
        default="https://gitlab.com",
        help="Base URL of the GitLab instance",
    )
    parser.add_argument(
        "--gl-token",
        dest="gl_token",
        help="GitLab API token (or set GITLAB_TOKEN env var)",
    )
    parser.add_argument(
        "--gl-namespace",
        dest="gl_namespace",
        help="GitLab group or user to mirror into (or set GITLAB_NAMESPACE; "
        "default: your own namespace)",
    )
    parser.add_argument(
        "--push-method",
        dest="push_method",
        choices=[method.value for method in CloneMethod],
        default=CloneMethod.HTTPS.value,
        help="Push method for GitLab destination: https or ssh (default: https)",
    )
    parser.add_argument(
        "--retry-delay",
        dest="retry_delay_s",
        type=float,
        default=3.0,
        help="Seconds between availability checks of new projects (default: 3.0)",
    )
    parser.add_argument(
        "--no-wait",
        action="store_true",
        dest="no_wait",
        help="Do not wait for new GitLab projects to become available",
    )


def _add_behavior_arguments(parser: argparse.ArgumentParser) -> None:
    """Add behavior and configuration arguments to parser."""
    parser.add_argument(
        "-d",
        "--dry-run",
        action="store_true",
        dest="dry_run",
        help="List actions without doing them",
    )
    parser.add_argument(
        "-e",
        "--exclude",
        dest="exclude",
        help="Skip repositories whose name contains this pattern",
    )
    parser.add_argument(
        "--visibility",
        dest="visibility",
        choices=[v.value for v in VisibilityOverride],
        default=VisibilityOverride.PRESERVE.value,
        help="Visibility of created GitLab projects (default: preserve)",
    )
    parser.add_argument(
        "--lfs-policy",
        dest="lfs_policy",
        choices=[p.value for p in LfsFailurePolicy],
        default=LfsFailurePolicy.CONTINUE.value,
        help="On LFS transfer failure: fail before pushing refs, continue "
        "pushing refs but report failure, or ignore (default: continue)",
    )
    parser.add_argument(
        "--workspace-dir",
        dest="workspace_dir",
        help="Directory for the temporary mirror workspace (default: system temp)",
    )
    parser.add_argument(
        "--git-timeout",
        dest="git_timeout_s",
        type=int,
        default=1800,
        help="Seconds before a single git command is abandoned (default: 1800)",
    )
    parser.add_argument(
        "--summary-json",
        dest="summary_json",
        help="Also write the run summary as JSON to this file",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        dest="strict",
        help="Exit with status 3 when any repository failed",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        dest="no_color",
        help="Disable colored output",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        dest="verbose",
        help="Show debug and security event output",
    )


def _validate_parsed_arguments(args) -> None:
    """Validate and sanitize parsed arguments in place."""
    try:
        args.gh_api_url = SecurityValidator.validate_url(args.gh_api_url, ["https", "http"])
        args.gl_url = SecurityValidator.validate_url(args.gl_url, ["https", "http"])

        namespace = args.gl_namespace or os.getenv("GITLAB_NAMESPACE")
        args.gl_namespace = (
            SecurityValidator.validate_namespace(namespace) if namespace else None
        )

        if args.workspace_dir:
            args.workspace_dir = SecurityValidator.validate_file_path(args.workspace_dir)
        if args.summary_json:
            args.summary_json = SecurityValidator.validate_file_path(args.summary_json)

        if args.retry_delay_s < 0 or args.retry_delay_s > 300:
            raise ValueError("retry delay must be between 0 and 300 seconds")
        if args.git_timeout_s < 10:
            raise ValueError("git timeout must be at least 10 seconds")

        if args.exclude:
            args.exclude = SecurityValidator.validate_pattern(args.exclude)

        Logger.security_event(
            "CONFIG_VALIDATION", "successfully validated all configuration inputs"
        )
    except ValueError as e:
        Logger.security_event(
            "CONFIG_VALIDATION_FAILED", f"configuration validation failed: {e}"
        )
        Logger.error(f"configuration validation error: {e}")
        sys.exit(EXIT_MISSING_ARGUMENTS)


def _get_tokens(args) -> tuple:
    gh_token = args.gh_token or os.getenv("GITHUB_TOKEN")
    gl_token = args.gl_token or os.getenv("GITLAB_TOKEN")
    if not gh_token:
        Logger.error("error: github token not provided (use --gh-token or GITHUB_TOKEN)")
        sys.exit(EXIT_AUTH_ERROR)
    if not gl_token:
        Logger.error("error: gitlab token not provided (use --gl-token or GITLAB_TOKEN)")
        sys.exit(EXIT_AUTH_ERROR)
    return gh_token, gl_token


def parse_arguments(argv: Optional[List[str]] = None) -> Config:
    """Parse command line arguments and return configuration object."""
    parser = _create_argument_parser()
    _add_mode_arguments(parser)
    _add_github_arguments(parser)
    _add_gitlab_arguments(parser)
    _add_behavior_arguments(parser)

    args = parser.parse_args(argv)
    Logger.configure(use_color=not args.no_color, verbose=args.verbose)

    _validate_parsed_arguments(args)
    gh_token, gl_token = _get_tokens(args)

    return Config(
        github=GitHubConfig(
            api_url=args.gh_api_url,
            token=gh_token,
            skip_archived=args.skip_archived,
            skip_forks=args.skip_forks,
            clone_method=CloneMethod(args.clone_method),
        ),
        gitlab=GitLabConfig(
            url=args.gl_url,
            token=gl_token,
            namespace=args.gl_namespace,
            push_method=CloneMethod(args.push_method),
            retry_delay_s=float(args.retry_delay_s),
            wait=not args.no_wait,
        ),
        transfer=TransferConfig(
            workspace_dir=args.workspace_dir,
            lfs_policy=LfsFailurePolicy(args.lfs_policy),
            git_timeout_s=args.git_timeout_s,
        ),
        behavior=SyncBehaviorConfig(
            mode=args.mode,
            dry_run=args.dry_run,
            exclude=args.exclude,
            visibility=VisibilityOverride(args.visibility),
            strict=args.strict,
            summary_json=args.summary_json,
        ),
    )
