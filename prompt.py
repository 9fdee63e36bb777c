#!/usr/bin/env python3
"""Interactive confirmation read from the controlling terminal."""

from __future__ import annotations

import os
from typing import Optional

from config import SyncMode
from errors import EXIT_MISSING_ARGUMENTS, FatalSyncError
from logging_utils import Logger
from models import RepositoryRecord, SyncPolicy

TTY_DEVICE = "CON" if os.name == "nt" else "/dev/tty"

DECLINE_ANSWERS = ("n", "no")


class TerminalPrompt:
    """Asks ``[Y/n]`` per repository on the terminal device.

    Standard input is never read: the repository list and the answers must
    not share a channel. End of input on the terminal counts as a decline.
    """

    def __init__(
        self,
        device: str = TTY_DEVICE,
        destination_label: str = "GitLab",
        output_device: Optional[str] = None,
    ) -> None:
        self.device = device
        self.output_device = output_device or device
        self.destination_label = destination_label

    @staticmethod
    def available(device: str = TTY_DEVICE) -> bool:
        """Whether a controlling terminal can be opened for reading."""
        try:
            with open(device, "r", encoding="utf-8"):
                return True
        except OSError:
            return False

    def __call__(self, record: RepositoryRecord) -> bool:
        question = (
            f"Mirror '{record.name}' ({record.visibility.value}) to "
            f"{self.destination_label}? [Y/n]: "
        )
        with open(self.device, "r", encoding="utf-8") as tty_in, open(
            self.output_device, "a", encoding="utf-8"
        ) as tty_out:
            tty_out.write(question)
            tty_out.flush()
            answer = tty_in.readline()
        if not answer:
            return False
        return answer.strip().lower() not in DECLINE_ANSWERS


def resolve_policy(
    mode: Optional[SyncMode],
    dry_run: bool = False,
    device: str = TTY_DEVICE,
) -> SyncPolicy:
    """Build the run's SyncPolicy.

    With no explicit mode the run is interactive only when a terminal is
    attached; under a job scheduler it falls back to batch rather than
    blocking on input that will never come.
    """
    if mode == SyncMode.BATCH:
        return SyncPolicy(mode=SyncMode.BATCH, dry_run=dry_run)

    if TerminalPrompt.available(device):
        return SyncPolicy(
            mode=SyncMode.INTERACTIVE,
            confirm_prompt=TerminalPrompt(device),
            dry_run=dry_run,
        )

    if mode == SyncMode.INTERACTIVE:
        raise FatalSyncError(
            "interactive mode requested but no terminal is attached",
            EXIT_MISSING_ARGUMENTS,
        )
    Logger.warn("no terminal attached, running in batch mode")
    return SyncPolicy(mode=SyncMode.BATCH, dry_run=dry_run)
