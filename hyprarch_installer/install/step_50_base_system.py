from __future__ import annotations

import logging

from ..context import InstallContext
from ..lib.files import write_file
from ..lib.pkg import genfstab, init_keyring, pacstrap
from ..pipeline import BaseStep

logger = logging.getLogger(__name__)


class InitKeyringStep(BaseStep):
    step_id = "50_init_keyring"
    label = "Initialize pacman keyring"

    def run(self, ctx: InstallContext) -> None:
        init_keyring(dry_run=ctx.dry_run)


class InstallBaseStep(BaseStep):
    step_id = "55_install_base"
    label = "Install base system"

    def run(self, ctx: InstallContext) -> None:
        packages = ctx.manifest.base_install_set(ctx.config.cpu)
        microcode = ctx.manifest.microcode(ctx.config.cpu)
        if microcode:
            logger.info("Including %s microcode: %s", ctx.config.cpu.value, ", ".join(microcode))
        else:
            logger.info("Skipping CPU microcode (cpu=%s)", ctx.config.cpu.value)
        pacstrap(ctx.target_root, packages, dry_run=ctx.dry_run)


class GenerateFstabStep(BaseStep):
    step_id = "60_generate_fstab"
    label = "Generate fstab"

    def run(self, ctx: InstallContext) -> None:
        # Overwrite rather than append so a re-run does not duplicate entries.
        contents = genfstab(ctx.target_root, dry_run=ctx.dry_run)
        write_file(ctx.paths.target("/etc/fstab"), contents, dry_run=ctx.dry_run)
