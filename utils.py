#!/usr/bin/env python3
"""Utility functions for bonjour-gitlab."""

import threading
import time
from dataclasses import replace
from typing import Iterable, List, Optional

from logging_utils import Logger
from models import RepositoryRecord, Visibility


class RateLimiter:
    """Rate limiter to prevent abuse and respect API limits."""

    def __init__(self, max_requests_per_minute: int = 60):
        self.max_requests = max_requests_per_minute
        self.requests: List[float] = []
        self.lock = threading.Lock()

    def wait_if_needed(self, operation_type: str = "API") -> None:
        """Wait if necessary to respect rate limits."""
        current_time = time.time()

        with self.lock:
            self._clean_old_requests(current_time)
            if len(self.requests) >= self.max_requests:
                wait_time = 60 - (current_time - self.requests[0])
                if wait_time > 0:
                    Logger.debug(
                        f"rate limit reached for {operation_type}, "
                        f"waiting {wait_time:.2f}s"
                    )
                    time.sleep(wait_time)
                    current_time = time.time()
                    self._clean_old_requests(current_time)
            self.requests.append(current_time)

    def _clean_old_requests(self, current_time: float) -> None:
        """Remove requests older than 1 minute."""
        cutoff_time = current_time - 60
        self.requests = [
            req_time for req_time in self.requests if req_time > cutoff_time
        ]


def normalize_visibility(value: Optional[str], private: bool = True) -> Visibility:
    """Map a provider visibility string to Visibility.

    Falls back to the ``private`` flag when the provider does not report
    a visibility (older GitHub Enterprise servers).
    """
    if value:
        try:
            return Visibility(value.strip().lower())
        except ValueError:
            Logger.warn(f"unknown visibility '{value}', treating as private")
            return Visibility.PRIVATE
    return Visibility.PRIVATE if private else Visibility.PUBLIC


def normalize_records(records: Iterable[RepositoryRecord]) -> List[RepositoryRecord]:
    """Lowercase names and drop records whose name is empty."""
    normalized: List[RepositoryRecord] = []
    for record in records:
        name = (record.name or "").strip().lower()
        if not name:
            Logger.debug("dropping repository record with empty name")
            continue
        if name != record.name:
            record = replace(record, name=name)
        normalized.append(record)
    return normalized
