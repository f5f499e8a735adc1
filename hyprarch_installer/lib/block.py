from __future__ import annotations

import logging
import os
import stat
from typing import List

from .command import run_cmd

logger = logging.getLogger(__name__)


def get_uuid(dev: str, *, dry_run: bool = False) -> str:
    """Return the UUID blkid reports for a block device (LUKS header or filesystem)."""

    r = run_cmd(["blkid", "-s", "UUID", "-o", "value", dev], dry_run=dry_run)
    uuid = (r.stdout or "").strip()
    if not uuid:
        if dry_run:
            return "00000000-0000-0000-0000-000000000000"
        raise RuntimeError(f"Unable to determine UUID for {dev}")
    return uuid


def is_block_device(path: str) -> bool:
    try:
        return stat.S_ISBLK(os.stat(path).st_mode)
    except OSError:
        return False


def is_mountpoint(path: str) -> bool:
    return os.path.ismount(path)


def list_disks() -> List[str]:
    """Rows of `lsblk -d -o NAME,SIZE,TYPE` whose TYPE is disk."""

    r = run_cmd(["lsblk", "-d", "-n", "-o", "NAME,SIZE,TYPE"], check=False)
    rows = []
    for line in (r.stdout or "").splitlines():
        parts = line.split()
        if len(parts) >= 3 and parts[-1] == "disk":
            rows.append(line.strip())
    return rows
