from __future__ import annotations

import logging

from ..context import SessionContext
from ..lib.assets import copy_tree_privileged
from ..lib.command import run_cmd, sudo
from ..lib.files import read_root_file, read_text, write_root_file
from ..pipeline import BaseStep
from ..render import PLYMOUTH_THEME, ensure_splash_cmdline, insert_plymouth_hook

logger = logging.getLogger(__name__)

THEMES_DIR = "/usr/share/plymouth/themes"
MKINITCPIO_CONF = "/etc/mkinitcpio.conf"
LIMINE_CONF = "/boot/limine.conf"


class InstallPlymouthThemeStep(BaseStep):
    step_id = "60_install_plymouth_theme"
    label = "Install Plymouth theme"

    def already_satisfied(self, ctx: SessionContext) -> bool:
        if not ctx.paths.system(f"{THEMES_DIR}/{PLYMOUTH_THEME}").is_dir():
            return False
        r = run_cmd(["plymouth-set-default-theme"], check=False)
        return r.returncode == 0 and r.stdout.strip() == PLYMOUTH_THEME

    def run(self, ctx: SessionContext) -> None:
        src = ctx.config.plymouth_theme_dir
        if not src.is_dir():
            raise RuntimeError(f"plymouth-theme directory not found in {ctx.config.assets_dir}")
        copy_tree_privileged(str(src), str(ctx.paths.system(f"{THEMES_DIR}/{PLYMOUTH_THEME}")), dry_run=ctx.dry_run)
        # -R rebuilds the initramfs with the new theme.
        sudo(["plymouth-set-default-theme", "-R", PLYMOUTH_THEME], dry_run=ctx.dry_run)


class PatchBootConfigStep(BaseStep):
    step_id = "61_patch_boot_config"
    label = "Add Plymouth to initramfs hooks and kernel cmdline"

    def _patched(self, ctx: SessionContext):
        hooks_path = ctx.paths.system(MKINITCPIO_CONF)
        limine_path = ctx.paths.system(LIMINE_CONF)
        hooks_old = read_text(hooks_path)
        limine_old = read_root_file(limine_path, dry_run=ctx.dry_run)
        return [
            (hooks_path, hooks_old, insert_plymouth_hook(hooks_old)),
            (limine_path, limine_old, ensure_splash_cmdline(limine_old)),
        ]

    def already_satisfied(self, ctx: SessionContext) -> bool:
        return all(old and old == new for _, old, new in self._patched(ctx))

    def run(self, ctx: SessionContext) -> None:
        for path, old, new in self._patched(ctx):
            if not old:
                if ctx.dry_run:
                    logger.info("Would patch %s (not readable without sudo)", str(path))
                    continue
                raise RuntimeError(f"{path} is missing or unreadable")
            if new != old:
                write_root_file(path, new, dry_run=ctx.dry_run)


class RebuildInitramfsStep(BaseStep):
    step_id = "62_rebuild_initramfs"
    label = "Rebuild initramfs with the Plymouth hook"

    # Always runs; a patched mkinitcpio.conf does not mean the images were rebuilt.
    def run(self, ctx: SessionContext) -> None:
        sudo(["mkinitcpio", "-P"], dry_run=ctx.dry_run)
