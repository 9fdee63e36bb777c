#!/usr/bin/env python3
"""Run-scoped data types: repository records, policy, results and summary."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional

from config import SyncMode


class Visibility(Enum):
    """Enumeration for repository visibility levels."""
    PRIVATE = "private"
    PUBLIC = "public"
    INTERNAL = "internal"


class Outcome(Enum):
    """Per-repository result of a run."""
    MIRRORED = "mirrored"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class RepositoryRecord:
    """A repository as listed by the source provider.

    Names are unique per source account and compared case-insensitively
    across providers, so they are kept lowercase.
    """
    name: str
    visibility: Visibility
    archived: bool = False
    fork: bool = False


@dataclass(frozen=True)
class SyncPolicy:
    mode: SyncMode
    confirm_prompt: Optional[Callable[[RepositoryRecord], bool]] = None
    dry_run: bool = False

    @property
    def interactive(self) -> bool:
        return self.mode == SyncMode.INTERACTIVE


@dataclass(frozen=True)
class TransferResult:
    repository: str
    outcome: Outcome
    detail: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "repository": self.repository,
            "outcome": self.outcome.value,
            "detail": self.detail,
        }


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RunSummary:
    """Ordered results of one invocation."""
    identity: Optional[str] = None
    results: List[TransferResult] = field(default_factory=list)
    started_at: datetime = field(default_factory=_now)
    finished_at: Optional[datetime] = None
    aborted: bool = False

    def add(self, result: TransferResult) -> None:
        self.results.append(result)

    def finish(self) -> None:
        self.finished_at = _now()

    def counts(self) -> Dict[Outcome, int]:
        totals = {outcome: 0 for outcome in Outcome}
        for result in self.results:
            totals[result.outcome] += 1
        return totals

    @property
    def failed(self) -> List[TransferResult]:
        return [r for r in self.results if r.outcome == Outcome.FAILED]

    @property
    def duration_s(self) -> Optional[float]:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> Dict[str, object]:
        return {
            "identity": self.identity,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "aborted": self.aborted,
            "counts": {o.value: n for o, n in self.counts().items()},
            "results": [r.to_dict() for r in self.results],
        }
