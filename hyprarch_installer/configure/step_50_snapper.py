from __future__ import annotations

import logging
from typing import Tuple

from ..context import SessionContext
from ..lib.command import sudo
from ..lib.files import file_matches, read_root_file, write_root_file
from ..lib.services import enable_system_units
from ..lib.snapper import SYNC_PLUGIN, SYNC_PLUGIN_PARKED, create_config, plugin_parked
from ..pipeline import BaseStep
from ..render import SNAPPER_RETENTION, render_limine_snapper_sync_conf, set_shell_vars

logger = logging.getLogger(__name__)

# (config name, subvolume)
SNAPPER_CONFIGS: Tuple[Tuple[str, str], ...] = (("root", "/"), ("home", "/home"))

LIMINE_SYNC_CONF = "/etc/limine-snapper-sync.conf"


def _config_path(ctx: SessionContext, name: str):
    return ctx.paths.system(f"/etc/snapper/configs/{name}")


def _snapshots_dir(ctx: SessionContext, subvolume: str):
    return ctx.paths.system(subvolume.rstrip("/") + "/.snapshots")


class CreateSnapperConfigsStep(BaseStep):
    step_id = "50_create_snapper_configs"
    label = "Create snapper configs"

    def already_satisfied(self, ctx: SessionContext) -> bool:
        return all(_config_path(ctx, name).exists() for name, _ in SNAPPER_CONFIGS)

    def run(self, ctx: SessionContext) -> None:
        missing = [(n, sv) for n, sv in SNAPPER_CONFIGS if not _config_path(ctx, n).exists()]
        with plugin_parked(
            ctx.paths.system(SYNC_PLUGIN),
            ctx.paths.system(SYNC_PLUGIN_PARKED),
            dry_run=ctx.dry_run,
        ):
            for name, subvolume in missing:
                # create-config refuses to run over an existing .snapshots directory.
                snapshots = _snapshots_dir(ctx, subvolume)
                if snapshots.is_dir():
                    logger.info("Removing existing %s", str(snapshots))
                    sudo(["rmdir", str(snapshots)], dry_run=ctx.dry_run)
                create_config(name, subvolume, dry_run=ctx.dry_run)
        logger.info("Snapper configs created: %s", ", ".join(n for n, _ in missing))


class SnapperRetentionStep(BaseStep):
    step_id = "51_snapper_retention"
    label = "Set snapper retention limits"

    def already_satisfied(self, ctx: SessionContext) -> bool:
        for name, _ in SNAPPER_CONFIGS:
            text = read_root_file(_config_path(ctx, name), dry_run=ctx.dry_run)
            if not text or set_shell_vars(text, SNAPPER_RETENTION) != text:
                return False
        return True

    def run(self, ctx: SessionContext) -> None:
        for name, _ in SNAPPER_CONFIGS:
            path = _config_path(ctx, name)
            text = read_root_file(path, dry_run=ctx.dry_run)
            if not text and not ctx.dry_run:
                raise RuntimeError(f"Snapper config {path} is missing or unreadable")
            write_root_file(path, set_shell_vars(text, SNAPPER_RETENTION), dry_run=ctx.dry_run)


class SnapperCleanupTimerStep(BaseStep):
    step_id = "52_snapper_cleanup_timer"
    label = "Enable snapper cleanup timer"

    def run(self, ctx: SessionContext) -> None:
        # Only cleanup; timeline snapshots stay disabled (pacman hooks create them).
        enable_system_units(["snapper-cleanup.timer"], now=True, dry_run=ctx.dry_run)


class LimineSnapperSyncConfStep(BaseStep):
    step_id = "53_limine_snapper_sync_conf"
    label = "Configure limine-snapper-sync"

    def already_satisfied(self, ctx: SessionContext) -> bool:
        return file_matches(ctx.paths.system(LIMINE_SYNC_CONF), render_limine_snapper_sync_conf())

    def run(self, ctx: SessionContext) -> None:
        write_root_file(ctx.paths.system(LIMINE_SYNC_CONF), render_limine_snapper_sync_conf(), dry_run=ctx.dry_run)


class SyncSnapshotsStep(BaseStep):
    step_id = "54_sync_snapshots"
    label = "Sync snapshots into boot menu"
    # Fails harmlessly when no snapshots exist yet.
    fatal = False

    def run(self, ctx: SessionContext) -> None:
        sudo(["limine-snapper-sync"], dry_run=ctx.dry_run)
