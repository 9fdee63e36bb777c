"""Tests for OutcomeReporter output."""

from __future__ import annotations

import json
from pathlib import Path

from models import Outcome, RunSummary, TransferResult
from outcome_reporter import OutcomeReporter, format_result


def _summary() -> RunSummary:
    summary = RunSummary(identity='octocat')
    summary.add(TransferResult('alpha', Outcome.MIRRORED))
    summary.add(TransferResult('beta', Outcome.SKIPPED, 'user declined'))
    summary.add(TransferResult('gamma', Outcome.FAILED, 'clone failed: repository not found'))
    summary.finish()
    return summary


def test_format_result() -> None:
    assert format_result(TransferResult('alpha', Outcome.MIRRORED)) == 'alpha: mirrored'
    assert (
        format_result(TransferResult('beta', Outcome.SKIPPED, 'dry run'))
        == 'beta: skipped (dry run)'
    )


def test_report_prints_one_line_per_repository(capsys) -> None:
    reporter = OutcomeReporter()

    reporter.report(TransferResult('alpha', Outcome.MIRRORED), 1, 2)
    reporter.report(TransferResult('beta', Outcome.FAILED, 'push failed'), 2, 2)

    captured = capsys.readouterr()
    assert '[1/2] alpha: mirrored' in captured.out
    assert '[2/2] beta: failed (push failed)' in captured.err


def test_summarize_counts_and_reasons(capsys) -> None:
    OutcomeReporter().summarize(_summary())

    captured = capsys.readouterr()
    assert 'summary: 3 repositories, 1 mirrored, 1 skipped, 1 failed' in captured.out
    assert 'failed: gamma: failed (clone failed: repository not found)' in captured.err


def test_summary_json_written(tmp_path: Path) -> None:
    path = tmp_path / 'logs' / 'last-run.json'

    OutcomeReporter(str(path)).summarize(_summary())

    data = json.loads(path.read_text())
    assert data['identity'] == 'octocat'
    assert data['counts'] == {'mirrored': 1, 'skipped': 1, 'failed': 1}
    assert data['results'][2] == {
        'repository': 'gamma',
        'outcome': 'failed',
        'detail': 'clone failed: repository not found',
    }
    assert data['aborted'] is False
