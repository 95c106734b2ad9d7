#!/usr/bin/env python3
"""Console-script wrappers for Trend Pulse.

After an editable install (``pip install -e .``) the following commands become
available system-wide:

* ``pulse-dashboard`` – refresh the trends feed, enrich with engagement, print snapshots
* ``pulse-proxy``     – serve the ``/rss-proxy`` and ``/generate-tweet`` API

The functions below simply forward to the existing scripts so there is no
business-logic duplication. Extra command-line arguments are passed through.
"""
from __future__ import annotations

import sys
from pathlib import Path
from subprocess import run

PYTHON = sys.executable
ROOT = Path(__file__).resolve().parents[1]  # Repository root


def _exec(cmd: list[str]) -> None:  # noqa: WPS421 (subprocess wrapper)
    """Execute *cmd* and propagate its exit status."""
    completed = run(cmd)
    if completed.returncode != 0:
        sys.exit(completed.returncode)


# ---------------------------------------------------------------------------
# Entry-points
# ---------------------------------------------------------------------------

def dashboard() -> None:
    """Run the refresh scheduler (``--once``, ``--export``, ``--interval`` forwarded)."""
    _exec([PYTHON, str(ROOT / "scripts/refresh_scheduler.py"), *sys.argv[1:]])


def proxy() -> None:
    """Run the proxy / summary generation API server."""
    _exec([PYTHON, str(ROOT / "scripts/proxy_server.py"), *sys.argv[1:]])
