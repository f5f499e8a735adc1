from __future__ import annotations

import logging

from ..config import GpuVendor
from ..context import SessionContext
from ..lib.pkg import pacman_install, yay_install
from ..lib.services import enable_system_units, start_system_units
from ..pipeline import BaseStep

logger = logging.getLogger(__name__)


class InstallProvidersStep(BaseStep):
    step_id = "40_install_providers"
    label = "Install provider packages"

    def run(self, ctx: SessionContext) -> None:
        # Settles virtual dependencies up front so --noconfirm never picks a provider for us.
        pacman_install(ctx.manifest.providers, dry_run=ctx.dry_run)


class InstallOfficialPackagesStep(BaseStep):
    step_id = "41_install_official_packages"
    label = "Install official repository packages"

    def run(self, ctx: SessionContext) -> None:
        packages = ctx.manifest.official
        logger.info("Installing %d official packages", len(packages))
        pacman_install(packages, dry_run=ctx.dry_run)


class InstallGpuDriversStep(BaseStep):
    step_id = "42_install_gpu_drivers"
    label = "Install GPU drivers"

    def already_satisfied(self, ctx: SessionContext) -> bool:
        return ctx.config.gpu == GpuVendor.NONE

    def run(self, ctx: SessionContext) -> None:
        drivers = ctx.manifest.gpu_drivers(ctx.config.gpu)
        if not drivers:
            raise RuntimeError(f"No driver packages listed for gpu={ctx.config.gpu.value}")
        logger.info("Installing %s drivers: %s", ctx.config.gpu.value, ", ".join(drivers))
        pacman_install(drivers, dry_run=ctx.dry_run)


class InstallBluetoothStep(BaseStep):
    step_id = "43_install_bluetooth"
    label = "Install and start Bluetooth"

    def run(self, ctx: SessionContext) -> None:
        pacman_install(ctx.manifest.bluetooth, dry_run=ctx.dry_run)
        enable_system_units(["bluetooth.service"], dry_run=ctx.dry_run)
        start_system_units(["bluetooth.service"], dry_run=ctx.dry_run)


class InstallAurPackagesStep(BaseStep):
    step_id = "45_install_aur_packages"
    label = "Install AUR packages"

    def run(self, ctx: SessionContext) -> None:
        packages = ctx.manifest.aur
        logger.info("Installing %d AUR packages", len(packages))
        yay_install(packages, dry_run=ctx.dry_run)
