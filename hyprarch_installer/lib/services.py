from __future__ import annotations

import logging
from typing import Sequence

from .command import run_cmd, sudo

logger = logging.getLogger(__name__)


def enable_system_units(units: Sequence[str], *, now: bool = False, dry_run: bool = False) -> None:
    for unit in units:
        argv = ["systemctl", "enable"]
        if now:
            argv.append("--now")
        sudo([*argv, unit], dry_run=dry_run)


def start_system_units(units: Sequence[str], *, dry_run: bool = False) -> None:
    for unit in units:
        sudo(["systemctl", "start", unit], dry_run=dry_run)


def enable_user_units(units: Sequence[str], *, now: bool = False, dry_run: bool = False) -> None:
    for unit in units:
        argv = ["systemctl", "--user", "enable"]
        if now:
            argv.append("--now")
        run_cmd([*argv, unit], dry_run=dry_run)


def daemon_reload(*, dry_run: bool = False) -> None:
    sudo(["systemctl", "daemon-reload"], dry_run=dry_run)


def is_enabled(unit: str, *, user: bool = False) -> bool:
    argv = ["systemctl"]
    if user:
        argv.append("--user")
    r = run_cmd([*argv, "is-enabled", unit], check=False)
    return r.returncode == 0
