from __future__ import annotations

import logging

from ..context import SessionContext
from ..lib.command import command_exists
from ..lib.files import read_text, write_root_file
from ..lib.pkg import build_yay, pacman_refresh
from ..pipeline import BaseStep
from ..render import multilib_enabled, uncomment_multilib

logger = logging.getLogger(__name__)


class InstallYayStep(BaseStep):
    step_id = "20_install_yay"
    label = "Bootstrap yay AUR helper"

    def already_satisfied(self, ctx: SessionContext) -> bool:
        return command_exists("yay")

    def run(self, ctx: SessionContext) -> None:
        build_yay(str(ctx.paths.system("/tmp")), dry_run=ctx.dry_run)
        logger.info("yay installed")


class EnableMultilibStep(BaseStep):
    step_id = "25_enable_multilib"
    label = "Enable multilib repository"

    def already_satisfied(self, ctx: SessionContext) -> bool:
        return multilib_enabled(read_text(ctx.paths.system("/etc/pacman.conf")))

    def run(self, ctx: SessionContext) -> None:
        conf = ctx.paths.system("/etc/pacman.conf")
        patched = uncomment_multilib(read_text(conf))
        if not multilib_enabled(patched):
            raise RuntimeError(f"No commented [multilib] section found in {conf}")
        write_root_file(conf, patched, dry_run=ctx.dry_run)
        pacman_refresh(dry_run=ctx.dry_run)
        logger.info("multilib repository enabled")
