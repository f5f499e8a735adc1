from __future__ import annotations

import logging
import os

from ..context import SessionContext
from ..errors import RequiresRebootError
from ..lib.pkg import pacman_upgrade
from ..pipeline import BaseStep

logger = logging.getLogger(__name__)


def running_kernel() -> str:
    return os.uname().release


class SystemUpdateStep(BaseStep):
    step_id = "10_system_update"
    label = "Full system update"

    def run(self, ctx: SessionContext) -> None:
        pacman_upgrade(dry_run=ctx.dry_run)

        # A kernel upgrade removes the running kernel's module tree; loading
        # any module (zram, bluetooth, ...) would fail until a reboot.
        kernel = running_kernel()
        if not ctx.dry_run and not ctx.paths.system(f"/lib/modules/{kernel}").is_dir():
            raise RequiresRebootError(kernel)
        logger.info("System updated (kernel %s)", kernel)
