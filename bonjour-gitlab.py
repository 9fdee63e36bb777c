#!/usr/bin/env python3
"""
Bonjour Gitlab - Mirror every repository you own on GitHub to GitLab.

This tool lists the repositories owned by the authenticated GitHub user,
creates matching projects on GitLab and mirrors all refs, tags and Git LFS
objects with git clone --mirror / git push --mirror. It runs interactively,
asking per repository, or unattended with --batch from a job scheduler.

Copyright (c) 2025 Michele Tavella <meeghele@proton.me>
Licensed under the MIT License. See LICENSE file for details.

Author: Michele Tavella <meeghele@proton.me>
License: MIT
"""

from __future__ import annotations

import sys
from typing import NoReturn

from argument_parser import parse_arguments
from errors import EXIT_EXECUTION_ERROR
from sync_orchestrator import run_from_config


def main() -> NoReturn:
    if __name__ != "__main__":
        sys.exit(EXIT_EXECUTION_ERROR)

    cfg = parse_arguments()
    sys.exit(run_from_config(cfg))


if __name__ == "__main__":
    main()
