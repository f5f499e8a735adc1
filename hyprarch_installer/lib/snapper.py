from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .command import sudo

logger = logging.getLogger(__name__)

SYNC_PLUGIN = "/usr/lib/snapper/plugins/10-limine-snapper-sync"
SYNC_PLUGIN_PARKED = "/tmp/10-limine-snapper-sync.tmp"


@contextmanager
def plugin_parked(
    plugin: Path,
    parked: Path,
    *,
    dry_run: bool = False,
) -> Iterator[bool]:
    """Move a snapper plugin aside for the duration of the block.

    limine-snapper-sync fires during create-config before the configs exist;
    parking it avoids that. The plugin is moved back on exit, including when
    the block raises. Yields whether anything was moved.
    """

    moved = False
    if plugin.is_file():
        logger.info("Parking snapper plugin %s", str(plugin))
        sudo(["mv", str(plugin), str(parked)], dry_run=dry_run)
        moved = True
    try:
        yield moved
    finally:
        if moved:
            logger.info("Restoring snapper plugin %s", str(plugin))
            sudo(["mv", str(parked), str(plugin)], dry_run=dry_run)


def create_config(name: str, subvolume: str, *, dry_run: bool = False) -> None:
    sudo(["snapper", "-c", name, "create-config", subvolume], dry_run=dry_run)
