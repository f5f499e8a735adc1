from __future__ import annotations

import logging

from ..context import InstallContext
from ..lib.command import run_cmd
from ..pipeline import BaseStep

logger = logging.getLogger(__name__)


class SyncClockStep(BaseStep):
    step_id = "10_sync_clock"
    label = "Synchronize system clock"

    def run(self, ctx: InstallContext) -> None:
        run_cmd(["timedatectl", "set-ntp", "true"], dry_run=ctx.dry_run)
        logger.info("System clock synchronized")
