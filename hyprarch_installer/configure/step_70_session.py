from __future__ import annotations

import logging

from ..context import SessionContext
from ..errors import WarnStepError
from ..lib.assets import copy_tree
from ..lib.files import file_matches, read_text, write_file, write_root_file
from ..pipeline import BaseStep
from ..render import (
    UWSM_LAUNCH_MARKER,
    render_autologin_override,
    render_hyprland_autostart,
    render_hyprland_conf,
    render_uwsm_launch_snippet,
)

logger = logging.getLogger(__name__)

AUTOLOGIN_OVERRIDE = "/etc/systemd/system/getty@tty1.service.d/autologin.conf"


class HyprlandConfigStep(BaseStep):
    step_id = "70_hyprland_config"
    label = "Write minimal Hyprland config"

    def _files(self, ctx: SessionContext):
        hypr = ctx.config.home / ".config/hypr"
        return [
            (hypr / "hyprland.conf", render_hyprland_conf()),
            (hypr / "autostart.conf", render_hyprland_autostart()),
        ]

    def already_satisfied(self, ctx: SessionContext) -> bool:
        return all(file_matches(p, c) for p, c in self._files(ctx))

    def run(self, ctx: SessionContext) -> None:
        for path, contents in self._files(ctx):
            write_file(path, contents, dry_run=ctx.dry_run)


class AutologinStep(BaseStep):
    step_id = "85_autologin"
    label = "Configure console auto-login"

    def already_satisfied(self, ctx: SessionContext) -> bool:
        return file_matches(ctx.paths.system(AUTOLOGIN_OVERRIDE), render_autologin_override(ctx.config.username))

    def run(self, ctx: SessionContext) -> None:
        write_root_file(
            ctx.paths.system(AUTOLOGIN_OVERRIDE),
            render_autologin_override(ctx.config.username),
            dry_run=ctx.dry_run,
        )


class UwsmLaunchStep(BaseStep):
    step_id = "86_uwsm_launch"
    label = "Launch Hyprland via UWSM on tty1 login"

    def already_satisfied(self, ctx: SessionContext) -> bool:
        return UWSM_LAUNCH_MARKER in read_text(ctx.config.home / ".bash_profile")

    def run(self, ctx: SessionContext) -> None:
        profile = ctx.config.home / ".bash_profile"
        write_file(profile, read_text(profile) + render_uwsm_launch_snippet(), dry_run=ctx.dry_run)


class DeployUwsmConfigStep(BaseStep):
    step_id = "87_deploy_uwsm_config"
    label = "Deploy UWSM config"
    fatal = False

    def run(self, ctx: SessionContext) -> None:
        src = ctx.config.uwsm_source_dir
        if not src.is_dir():
            raise WarnStepError(f"UWSM config directory not found: {src}")
        copy_tree(str(src), str(ctx.config.home / ".config/uwsm"), dry_run=ctx.dry_run)
