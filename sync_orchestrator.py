#!/usr/bin/env python3
"""Main orchestrator for mirroring a GitHub account to GitLab."""

from __future__ import annotations

import signal
from typing import Optional

from capabilities import CreateOutcome, RepositoryDestination, RepositorySource
from config import Config, VisibilityOverride
from errors import (EXIT_EXECUTION_ERROR, EXIT_INTERRUPTED,
                    EXIT_PARTIAL_FAILURE, EXIT_SUCCESS, FatalSyncError,
                    RunInterrupted, SyncError)
from git_backend import GitCli
from github_source import GitHubSource
from gitlab_destination import GitLabDestination
from logging_utils import Logger
from mirror_transfer import MirrorTransfer
from models import (Outcome, RepositoryRecord, RunSummary, SyncPolicy,
                    TransferResult, Visibility)
from outcome_reporter import OutcomeReporter
from prompt import resolve_policy
from security import SecurityValidator
from utils import normalize_records
from workspace import TransferWorkspace


class SyncOrchestrator:
    """Drives one batch: list, confirm, publish, transfer, record.

    Repositories are processed strictly one at a time. A failure in one
    repository is recorded and the batch moves on; only identity and
    workspace problems abort the run.
    """

    def __init__(
        self,
        source: RepositorySource,
        destination: RepositoryDestination,
        transfer: MirrorTransfer,
        *,
        workspace_dir: Optional[str] = None,
        reporter: Optional[OutcomeReporter] = None,
        exclude: Optional[str] = None,
        visibility: VisibilityOverride = VisibilityOverride.PRESERVE,
        strict: bool = False,
    ) -> None:
        self.source = source
        self.destination = destination
        self.transfer = transfer
        self.workspace_dir = workspace_dir
        self.reporter = reporter or OutcomeReporter()
        self.exclude = exclude.lower() if exclude else None
        self.visibility = visibility
        self.strict = strict
        self._in_flight: Optional[RepositoryRecord] = None

    @classmethod
    def from_config(cls, cfg: Config) -> "SyncOrchestrator":
        source = GitHubSource(cfg.github)
        destination = GitLabDestination(cfg.gitlab)
        transfer = MirrorTransfer(
            source,
            destination,
            GitCli(timeout_s=cfg.transfer.git_timeout_s),
            lfs_policy=cfg.transfer.lfs_policy,
        )
        return cls(
            source,
            destination,
            transfer,
            workspace_dir=cfg.transfer.workspace_dir,
            reporter=OutcomeReporter(cfg.behavior.summary_json),
            exclude=cfg.behavior.exclude,
            visibility=cfg.behavior.visibility,
            strict=cfg.behavior.strict,
        )

    def run(self, policy: SyncPolicy) -> RunSummary:
        """Mirror every listed repository and return the run's results.

        Raises FatalSyncError when the identity or the workspace cannot be
        set up. An interrupt abandons the current repository and returns
        the results gathered so far with ``aborted`` set.
        """
        summary = RunSummary()

        self.source.connect()
        identity = self.source.resolve_identity()
        summary.identity = identity
        self.destination.connect()

        current: Optional[RepositoryRecord] = None
        self._in_flight = None
        index = total = 0
        try:
            with TransferWorkspace(self.workspace_dir) as workspace:
                records = normalize_records(self.source.list_repositories(identity))
                total = len(records)
                for index, record in enumerate(records, start=1):
                    current = record
                    result = self._process_safely(record, workspace, policy, index, total)
                    current = self._in_flight = None
                    self._record(summary, result, index, total)
        except (KeyboardInterrupt, RunInterrupted) as e:
            summary.aborted = True
            Logger.warn(f"interrupted: {str(e) or 'keyboard interrupt'}")
            if current is not None:
                # before create_repository nothing has reached GitLab
                outcome = Outcome.FAILED if self._in_flight is not None else Outcome.SKIPPED
                self._record(
                    summary,
                    TransferResult(current.name, outcome, "interrupted"),
                    index,
                    total,
                )
        finally:
            summary.finish()

        return summary

    def execute(self, policy: SyncPolicy) -> int:
        """Run, report, and map the run to a process exit code."""
        try:
            summary = self.run(policy)
        except FatalSyncError as e:
            Logger.error(str(e))
            return e.exit_code
        except (KeyboardInterrupt, RunInterrupted):
            Logger.warn("interrupted before any repository was processed")
            return EXIT_INTERRUPTED
        except Exception as e:
            Logger.error(f"unexpected error: {e}")
            return EXIT_EXECUTION_ERROR

        self.reporter.summarize(summary)
        if summary.aborted:
            return EXIT_INTERRUPTED
        if self.strict and summary.failed:
            return EXIT_PARTIAL_FAILURE
        Logger.info("mission accomplished")
        return EXIT_SUCCESS

    def _record(
        self, summary: RunSummary, result: TransferResult, index: int, total: int
    ) -> None:
        summary.add(result)
        self.reporter.report(result, index, total)

    def _target_visibility(self, record: RepositoryRecord) -> Visibility:
        if self.visibility == VisibilityOverride.PRESERVE:
            return record.visibility
        return Visibility(self.visibility.value)

    def _process_safely(
        self,
        record: RepositoryRecord,
        workspace: TransferWorkspace,
        policy: SyncPolicy,
        index: int,
        total: int,
    ) -> TransferResult:
        """Process one repository; per-repository errors become a failed result."""
        try:
            return self._process(record, workspace, policy, index, total)
        except SyncError as e:
            detail = str(e)
        except Exception as e:
            Logger.debug(f"unexpected {type(e).__name__} while processing {record.name}")
            detail = f"unexpected error: {e}"
        return TransferResult(
            record.name, Outcome.FAILED, SecurityValidator.sanitize_for_logging(detail)
        )

    def _process(
        self,
        record: RepositoryRecord,
        workspace: TransferWorkspace,
        policy: SyncPolicy,
        index: int,
        total: int,
    ) -> TransferResult:
        if self.exclude and self.exclude in record.name:
            return TransferResult(record.name, Outcome.SKIPPED, "excluded")

        if policy.interactive:
            confirmed = policy.confirm_prompt is not None and policy.confirm_prompt(record)
            if not confirmed:
                return TransferResult(record.name, Outcome.SKIPPED, "user declined")

        visibility = self._target_visibility(record)
        if policy.dry_run:
            Logger.info(
                f"[{index}/{total}] would mirror: {record.name} ({visibility.value})"
            )
            return TransferResult(record.name, Outcome.SKIPPED, "dry run")

        Logger.info(f"[{index}/{total}] sync: {record.name} ({visibility.value})")
        self._in_flight = record
        created = self.destination.create_repository(record.name, visibility)
        if created == CreateOutcome.ALREADY_EXISTS:
            Logger.info(f"note: {record.name} already on GitLab")

        with workspace.repository_dir(record.name) as work_dir:
            warning = self.transfer.transfer(record, work_dir)
        return TransferResult(record.name, Outcome.MIRRORED, warning)


def _raise_interrupted(signum, _frame) -> None:
    raise RunInterrupted(signum)


def install_signal_handlers() -> None:
    """Turn scheduler termination into an exception so cleanup runs."""
    signal.signal(signal.SIGTERM, _raise_interrupted)
    if hasattr(signal, "SIGHUP"):
        signal.signal(signal.SIGHUP, _raise_interrupted)


def run_from_config(cfg: Config) -> int:
    install_signal_handlers()
    try:
        policy = resolve_policy(cfg.behavior.mode, dry_run=cfg.behavior.dry_run)
        Logger.info(f"mode: {policy.mode.value}{' (dry run)' if policy.dry_run else ''}")
        return SyncOrchestrator.from_config(cfg).execute(policy)
    except FatalSyncError as e:
        Logger.error(str(e))
        return e.exit_code
    except (KeyboardInterrupt, RunInterrupted):
        Logger.warn("interrupted")
        return EXIT_INTERRUPTED
