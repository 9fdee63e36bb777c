#!/usr/bin/env python3
"""Per-repository outcome lines and the end-of-run summary."""

from __future__ import annotations

import json
import os
from typing import Optional

from logging_utils import Logger
from models import Outcome, RunSummary, TransferResult


def format_result(result: TransferResult) -> str:
    line = f"{result.repository}: {result.outcome.value}"
    if result.detail:
        line += f" ({result.detail})"
    return line


class OutcomeReporter:
    """Prints each outcome as it happens and aggregates at the end.

    Output is line oriented so a scheduler can redirect it into a log file.
    """

    def __init__(self, summary_json: Optional[str] = None) -> None:
        self.summary_json = summary_json

    def report(self, result: TransferResult, index: Optional[int] = None,
               total: Optional[int] = None) -> None:
        line = format_result(result)
        if index is not None and total is not None:
            line = f"[{index}/{total}] {line}"
        if result.outcome == Outcome.MIRRORED:
            Logger.success(line)
        elif result.outcome == Outcome.SKIPPED:
            Logger.warn(line)
        else:
            Logger.error(line)

    def summarize(self, summary: RunSummary) -> None:
        counts = summary.counts()
        aggregate = ", ".join(f"{counts[o]} {o.value}" for o in Outcome)
        duration = summary.duration_s
        timing = f" in {duration:.1f}s" if duration is not None else ""
        Logger.info(f"summary: {len(summary.results)} repositories, {aggregate}{timing}")

        for result in summary.failed:
            Logger.error(f"failed: {format_result(result)}")

        if summary.aborted:
            Logger.warn("run aborted before all repositories were processed")

        if self.summary_json:
            self.write_json(summary)

    def write_json(self, summary: RunSummary) -> None:
        directory = os.path.dirname(self.summary_json)
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.summary_json, "w", encoding="utf-8") as handle:
                json.dump(summary.to_dict(), handle, indent=2)
                handle.write("\n")
        except OSError as e:
            Logger.warn(f"failed to write summary to {self.summary_json}: {e}")
            return
        Logger.debug(f"summary written to {self.summary_json}")
