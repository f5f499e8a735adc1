from __future__ import annotations

import logging

from ..context import SessionContext
from ..lib.services import enable_system_units, enable_user_units, is_enabled, start_system_units
from ..pipeline import BaseStep

logger = logging.getLogger(__name__)

PIPEWIRE_UNITS = ["pipewire.service", "pipewire-pulse.service", "wireplumber.service"]


class GnomeKeyringStep(BaseStep):
    step_id = "80_gnome_keyring"
    label = "Enable GNOME Keyring socket"

    def already_satisfied(self, ctx: SessionContext) -> bool:
        return is_enabled("gnome-keyring-daemon.socket", user=True)

    def run(self, ctx: SessionContext) -> None:
        enable_user_units(["gnome-keyring-daemon.socket"], dry_run=ctx.dry_run)


class PipewireStep(BaseStep):
    step_id = "81_pipewire"
    label = "Enable PipeWire audio services"

    def run(self, ctx: SessionContext) -> None:
        enable_user_units(PIPEWIRE_UNITS, now=True, dry_run=ctx.dry_run)


class SshStep(BaseStep):
    step_id = "82_ssh"
    label = "Enable SSH server"

    def run(self, ctx: SessionContext) -> None:
        enable_system_units(["sshd.service"], dry_run=ctx.dry_run)
        start_system_units(["sshd.service"], dry_run=ctx.dry_run)
