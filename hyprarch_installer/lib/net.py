from __future__ import annotations

import logging
from .command import run_cmd

logger = logging.getLogger(__name__)


def is_online(host: str = "archlinux.org", *, dry_run: bool = False) -> bool:
    """Best-effort online check."""

    try:
        r = run_cmd(["ping", "-c", "1", "-W", "3", host], check=False, dry_run=dry_run)
    except OSError:
        return False
    return r.returncode == 0
