from __future__ import annotations

import logging

from ..context import SessionContext
from ..errors import WarnStepError
from ..lib.command import run_cmd
from ..lib.files import file_matches, write_root_file
from ..lib.pkg import pacman_install
from ..lib.services import daemon_reload, start_system_units
from ..pipeline import BaseStep
from ..render import render_zram_generator_conf

logger = logging.getLogger(__name__)

ZRAM_CONF = "/etc/systemd/zram-generator.conf"
ZRAM_UNIT = "systemd-zram-setup@zram0.service"


class ConfigureZramStep(BaseStep):
    step_id = "30_configure_zram"
    label = "Configure zram swap"

    def already_satisfied(self, ctx: SessionContext) -> bool:
        return file_matches(ctx.paths.system(ZRAM_CONF), render_zram_generator_conf())

    def run(self, ctx: SessionContext) -> None:
        pacman_install(["zram-generator"], dry_run=ctx.dry_run)
        write_root_file(ctx.paths.system(ZRAM_CONF), render_zram_generator_conf(), dry_run=ctx.dry_run)
        daemon_reload(dry_run=ctx.dry_run)
        start_system_units([ZRAM_UNIT], dry_run=ctx.dry_run)


class VerifyZramStep(BaseStep):
    step_id = "31_verify_zram"
    label = "Verify zram swap is active"
    fatal = False

    def run(self, ctx: SessionContext) -> None:
        if ctx.dry_run:
            return
        r = run_cmd(["swapon", "--show"], check=False)
        active = [line for line in r.stdout.splitlines() if "zram0" in line]
        if not active:
            raise WarnStepError("zram setup completed but zram0 is not listed by swapon")
        logger.info("zram active: %s", active[0].strip())

