"""Configuration of the freshly installed root, run through arch-chroot.

Each sub-step is safe to re-run: generated files are overwritten, text patches
are no-ops when already applied, and the user account is only created once.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List

from ..context import InstallContext
from ..lib.block import get_uuid
from ..lib.bootloader import install_limine, regenerate_initramfs
from ..lib.chroot import chroot_cmd
from ..lib.files import read_text, write_file
from ..pipeline import BaseStep, Step, run_pipeline
from ..render import (
    enable_wheel_sudo,
    ensure_locale_gen,
    render_hostname,
    render_hosts,
    render_locale_conf,
    render_vconsole_conf,
    set_mkinitcpio_hooks,
)

logger = logging.getLogger(__name__)


class TimezoneStep(BaseStep):
    step_id = "71_timezone"
    label = "Set timezone and hardware clock"

    def run(self, ctx: InstallContext) -> None:
        zone = f"/usr/share/zoneinfo/{ctx.config.timezone}"
        chroot_cmd(ctx.target_root, ["ln", "-sf", zone, "/etc/localtime"], dry_run=ctx.dry_run)
        chroot_cmd(ctx.target_root, ["hwclock", "--systohc"], dry_run=ctx.dry_run)


class LocaleStep(BaseStep):
    step_id = "72_locale"
    label = "Generate locale and console keymap"

    def run(self, ctx: InstallContext) -> None:
        locale_gen = ctx.paths.target("/etc/locale.gen")
        write_file(locale_gen, ensure_locale_gen(read_text(locale_gen), ctx.config.locale), dry_run=ctx.dry_run)
        chroot_cmd(ctx.target_root, ["locale-gen"], dry_run=ctx.dry_run)
        write_file(ctx.paths.target("/etc/locale.conf"), render_locale_conf(ctx.config), dry_run=ctx.dry_run)
        write_file(ctx.paths.target("/etc/vconsole.conf"), render_vconsole_conf(ctx.config), dry_run=ctx.dry_run)


class HostnameStep(BaseStep):
    step_id = "73_hostname"
    label = "Write hostname and hosts"

    def run(self, ctx: InstallContext) -> None:
        write_file(ctx.paths.target("/etc/hostname"), render_hostname(ctx.config), dry_run=ctx.dry_run)
        write_file(ctx.paths.target("/etc/hosts"), render_hosts(ctx.config), dry_run=ctx.dry_run)


def _user_exists(ctx: InstallContext, username: str) -> bool:
    passwd = read_text(ctx.paths.target("/etc/passwd"))
    return any(line.split(":", 1)[0] == username for line in passwd.splitlines())


class AccountsStep(BaseStep):
    step_id = "74_accounts"
    label = "Create user and set passwords"

    def run(self, ctx: InstallContext) -> None:
        cfg = ctx.config
        # Root gets the same password as the user.
        chroot_cmd(ctx.target_root, ["chpasswd"], input_text=f"root:{cfg.user_password}\n", dry_run=ctx.dry_run)

        if _user_exists(ctx, cfg.username):
            logger.info("User %s already exists; keeping account", cfg.username)
        else:
            chroot_cmd(
                ctx.target_root,
                ["useradd", "-m", "-G", "wheel", "-s", "/bin/bash", cfg.username],
                dry_run=ctx.dry_run,
            )
        chroot_cmd(
            ctx.target_root,
            ["chpasswd"],
            input_text=f"{cfg.username}:{cfg.user_password}\n",
            dry_run=ctx.dry_run,
        )


class WheelSudoStep(BaseStep):
    step_id = "75_wheel_sudo"
    label = "Enable sudo for wheel"

    def already_satisfied(self, ctx: InstallContext) -> bool:
        text = read_text(ctx.paths.target("/etc/sudoers"))
        return bool(text) and enable_wheel_sudo(text) == text

    def run(self, ctx: InstallContext) -> None:
        sudoers = ctx.paths.target("/etc/sudoers")
        write_file(sudoers, enable_wheel_sudo(read_text(sudoers)), dry_run=ctx.dry_run)


class InitramfsHooksStep(BaseStep):
    step_id = "76_initramfs_hooks"
    label = "Configure mkinitcpio hooks for encryption"

    def run(self, ctx: InstallContext) -> None:
        conf = ctx.paths.target("/etc/mkinitcpio.conf")
        write_file(conf, set_mkinitcpio_hooks(read_text(conf)), dry_run=ctx.dry_run)


class BootloaderStep(BaseStep):
    step_id = "77_bootloader"
    label = "Install and configure Limine"

    def run(self, ctx: InstallContext) -> None:
        if not ctx.luks_uuid:
            raise RuntimeError("LUKS UUID unknown; cannot write boot entry")
        install_limine(
            target_root=ctx.target_root,
            luks_uuid=ctx.luks_uuid,
            mapper_name=ctx.paths.mapper_name,
            dry_run=ctx.dry_run,
        )


class InitramfsStep(BaseStep):
    step_id = "78_initramfs"
    label = "Regenerate initramfs"

    def run(self, ctx: InstallContext) -> None:
        regenerate_initramfs(ctx.target_root, dry_run=ctx.dry_run)


class NetworkStep(BaseStep):
    step_id = "79_network"
    label = "Enable NetworkManager"

    def run(self, ctx: InstallContext) -> None:
        chroot_cmd(ctx.target_root, ["systemctl", "enable", "NetworkManager"], dry_run=ctx.dry_run)


def build_target_steps() -> List[Step]:
    return [
        TimezoneStep(),
        LocaleStep(),
        HostnameStep(),
        AccountsStep(),
        WheelSudoStep(),
        InitramfsHooksStep(),
        BootloaderStep(),
        InitramfsStep(),
        NetworkStep(),
    ]


class ConfigureTargetStep(BaseStep):
    step_id = "70_configure_target"
    label = "Configure installed system"

    def run(self, ctx: InstallContext) -> None:
        luks_uuid = get_uuid(ctx.config.root_partition, dry_run=ctx.dry_run)
        logger.info("LUKS UUID for %s: %s", ctx.config.root_partition, luks_uuid)
        result = run_pipeline(ctx=replace(ctx, luks_uuid=luks_uuid), steps=build_target_steps())
        logger.info(
            "Target configured (ran=%s skipped=%s)",
            ",".join(result.ran_steps),
            ",".join(result.skipped_steps),
        )
