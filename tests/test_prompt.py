"""Tests for the terminal confirmation channel and policy resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from config import SyncMode
from errors import FatalSyncError
from models import RepositoryRecord, Visibility
from prompt import TerminalPrompt, resolve_policy

RECORD = RepositoryRecord(name='alpha', visibility=Visibility.PRIVATE)


def _prompt(tmp_path: Path, answer: str) -> TerminalPrompt:
    device = tmp_path / 'tty'
    device.write_text(answer)
    return TerminalPrompt(str(device), output_device=str(tmp_path / 'tty-out'))


@pytest.mark.parametrize(
    'answer, expected',
    [
        ('\n', True),
        ('y\n', True),
        ('Yes\n', True),
        ('n\n', False),
        ('N\n', False),
        ('no\n', False),
        ('', False),
    ],
)
def test_answers(tmp_path: Path, answer: str, expected: bool) -> None:
    """Only an explicit no (or end of input) declines."""
    assert _prompt(tmp_path, answer)(RECORD) is expected


def test_question_written_to_terminal(tmp_path: Path) -> None:
    _prompt(tmp_path, 'y\n')(RECORD)

    written = (tmp_path / 'tty-out').read_text()
    assert written == "Mirror 'alpha' (private) to GitLab? [Y/n]: "


def test_batch_mode_never_prompts(tmp_path: Path) -> None:
    policy = resolve_policy(SyncMode.BATCH, device=str(tmp_path / 'missing'))

    assert policy.mode == SyncMode.BATCH
    assert policy.confirm_prompt is None


def test_no_terminal_falls_back_to_batch(tmp_path: Path) -> None:
    policy = resolve_policy(None, dry_run=True, device=str(tmp_path / 'missing'))

    assert policy.mode == SyncMode.BATCH
    assert policy.dry_run is True


def test_interactive_requires_terminal(tmp_path: Path) -> None:
    with pytest.raises(FatalSyncError):
        resolve_policy(SyncMode.INTERACTIVE, device=str(tmp_path / 'missing'))


def test_terminal_selects_interactive(tmp_path: Path) -> None:
    device = tmp_path / 'tty'
    device.write_text('')

    policy = resolve_policy(None, device=str(device))

    assert policy.interactive
    assert isinstance(policy.confirm_prompt, TerminalPrompt)
    assert policy.confirm_prompt.device == str(device)
