from __future__ import annotations

import logging
import shutil

from ..context import SessionContext
from ..pipeline import BaseStep

logger = logging.getLogger(__name__)


class CleanupCloneStep(BaseStep):
    step_id = "95_cleanup_clone"
    label = "Remove installer checkout"
    fatal = False

    def already_satisfied(self, ctx: SessionContext) -> bool:
        # clone_dir is only set when the user agreed to the cleanup.
        clone = ctx.config.clone_dir
        return clone is None or not clone.exists()

    def run(self, ctx: SessionContext) -> None:
        clone = ctx.config.clone_dir
        if ctx.dry_run:
            logger.info("Would remove %s", str(clone))
            return
        shutil.rmtree(clone)
        logger.info("Removed %s", str(clone))
