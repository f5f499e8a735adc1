from dataclasses import replace
from pathlib import Path

import pytest

from hyprarch_installer.config import GpuVendor
from hyprarch_installer.configure import build_configure_steps
from hyprarch_installer.configure.step_20_repositories import EnableMultilibStep
from hyprarch_installer.configure.step_50_snapper import CreateSnapperConfigsStep
from hyprarch_installer.configure.step_60_plymouth import PatchBootConfigStep, RebuildInitramfsStep
from hyprarch_installer.configure.step_70_session import UwsmLaunchStep
from hyprarch_installer.configure.step_90_cleanup import CleanupCloneStep
from hyprarch_installer.context import SessionContext
from hyprarch_installer.errors import FatalStepError, RequiresRebootError
from hyprarch_installer.lib.snapper import SYNC_PLUGIN
from hyprarch_installer.pipeline import run_pipeline
from hyprarch_installer.render import render_limine_conf

KERNEL = "6.9.1-arch1-1"

PACMAN_CONF = "[core]\nInclude = /etc/pacman.d/mirrorlist\n\n#[multilib]\n#Include = /etc/pacman.d/mirrorlist\n"
HOOKS = "HOOKS=(base udev autodetect microcode modconf kms keyboard keymap consolefont block encrypt filesystems fsck)\n"


@pytest.fixture
def system(paths, monkeypatch):
    root = Path(paths.system_root)
    (root / f"lib/modules/{KERNEL}").mkdir(parents=True)
    (root / "etc").mkdir()
    (root / "etc/pacman.conf").write_text(PACMAN_CONF)
    (root / "etc/mkinitcpio.conf").write_text(HOOKS)
    (root / "boot").mkdir()
    (root / "boot/limine.conf").write_text(render_limine_conf("abcd").replace("quiet splash ", ""))
    (root / "tmp").mkdir()
    monkeypatch.setattr("hyprarch_installer.configure.step_10_system_update.running_kernel", lambda: KERNEL)
    monkeypatch.setattr("hyprarch_installer.configure.step_20_repositories.command_exists", lambda name: False)
    return root


@pytest.fixture
def ctx(session, manifest, paths):
    return SessionContext(config=session, manifest=manifest, paths=paths)


def _fake_snapper(fake_run, root: Path):
    def create_config(argv, inp):
        name = argv[argv.index("-c") + 1]
        conf = root / "etc/snapper/configs" / name
        conf.parent.mkdir(parents=True, exist_ok=True)
        conf.write_text('SUBVOLUME="/"\nNUMBER_LIMIT="50"\nTIMELINE_CREATE="yes"\n')
        return 0, "", ""

    fake_run.respond_with(["sudo", "snapper"], create_config)


def test_full_configure_run(fake_run, ctx, system):
    _fake_snapper(fake_run, system)
    fake_run.respond(["swapon"], stdout="/dev/zram0 partition 3.8G 0B 100\n")

    result = run_pipeline(ctx=ctx, steps=build_configure_steps())

    assert result.warned_steps == []
    cmds = fake_run.commands()
    assert cmds[0] == "sudo pacman -Syu --noconfirm"
    assert "git clone https://aur.archlinux.org/yay.git" in " ".join(cmds)
    assert cmds.index("sudo pacman -Sy") > 0
    providers = next(i for i, c in enumerate(cmds) if "pipewire-jack" in c)
    official = next(i for i, c in enumerate(cmds) if " hyprland " in f"{c} ")
    assert providers < official
    assert "sudo pacman -S --needed --noconfirm mesa vulkan-radeon libva-mesa-driver mesa-vdpau" in cmds
    assert any(c.startswith("yay -S --needed --noconfirm") for c in cmds)
    assert "sudo plymouth-set-default-theme -R hyprarch" in cmds
    assert cmds.count("sudo mkinitcpio -P") == 1

    assert "\n[multilib]\n" in (system / "etc/pacman.conf").read_text()
    assert "zram-size = ram / 4" in (system / "etc/systemd/zram-generator.conf").read_text()
    root_conf = (system / "etc/snapper/configs/root").read_text()
    assert 'NUMBER_LIMIT="10"' in root_conf and 'TIMELINE_LIMIT_DAILY="0"' in root_conf
    assert "plymouth block encrypt" in (system / "etc/mkinitcpio.conf").read_text()
    assert "kernel_cmdline: quiet splash cryptdevice" in (system / "boot/limine.conf").read_text()
    assert (system / "usr/share/plymouth/themes/hyprarch/hyprarch.plymouth").is_file()
    assert "--autologin alice" in (system / "etc/systemd/system/getty@tty1.service.d/autologin.conf").read_text()

    home = ctx.config.home
    assert (home / ".config/hypr/hyprland.conf").is_file()
    assert "uwsm start hyprland.desktop" in (home / ".bash_profile").read_text()
    assert (home / ".config/uwsm/env").is_file()


def test_kernel_update_requires_reboot(fake_run, ctx, system):
    (system / f"lib/modules/{KERNEL}").rmdir()

    with pytest.raises(RequiresRebootError) as exc:
        run_pipeline(ctx=ctx, steps=build_configure_steps())

    assert exc.value.kernel == KERNEL
    assert fake_run.commands() == ["sudo pacman -Syu --noconfirm"]


def test_multilib_already_enabled_is_skipped(fake_run, ctx, system):
    (system / "etc/pacman.conf").write_text("[multilib]\nInclude = /etc/pacman.d/mirrorlist\n")

    result = run_pipeline(ctx=ctx, steps=[EnableMultilibStep()])

    assert result.skipped_steps == ["25_enable_multilib"]
    assert fake_run.calls == []


def test_snapper_plugin_restored_when_create_config_fails(fake_run, ctx, system):
    plugin = system / SYNC_PLUGIN.lstrip("/")
    plugin.parent.mkdir(parents=True)
    plugin.write_text("#!/bin/sh\n")
    fake_run.respond(["sudo", "snapper"], rc=1, stderr="Creating config failed")

    with pytest.raises(FatalStepError):
        run_pipeline(ctx=ctx, steps=[CreateSnapperConfigsStep()])

    assert plugin.read_text() == "#!/bin/sh\n"
    moves = [c for c in fake_run.commands() if c.startswith("sudo mv")]
    assert len(moves) == 2


def test_snapper_configs_created_once(fake_run, ctx, system):
    _fake_snapper(fake_run, system)
    (system / ".snapshots").mkdir()

    run_pipeline(ctx=ctx, steps=[CreateSnapperConfigsStep()])
    second = run_pipeline(ctx=ctx, steps=[CreateSnapperConfigsStep()])

    creates = [c for c in fake_run.commands() if "create-config" in c]
    assert creates == ["sudo snapper -c root create-config /", "sudo snapper -c home create-config /home"]
    assert f"sudo rmdir {system}/.snapshots" in fake_run.commands()
    assert second.skipped_steps == ["50_create_snapper_configs"]


def test_uwsm_launch_appended_once(fake_run, ctx):
    profile = ctx.config.home / ".bash_profile"
    profile.write_text("[[ -f ~/.bashrc ]] && . ~/.bashrc\n")

    run_pipeline(ctx=ctx, steps=[UwsmLaunchStep()])
    run_pipeline(ctx=ctx, steps=[UwsmLaunchStep()])

    text = profile.read_text()
    assert text.startswith("[[ -f ~/.bashrc ]]")
    assert text.count("uwsm start hyprland.desktop") == 1


def test_no_gpu_skips_drivers(fake_run, ctx, system):
    _fake_snapper(fake_run, system)
    fake_run.respond(["swapon"], stdout="/dev/zram0 partition 3.8G 0B 100\n")
    ctx = replace(ctx, config=replace(ctx.config, gpu=GpuVendor.NONE))

    result = run_pipeline(ctx=ctx, steps=build_configure_steps())

    assert "42_install_gpu_drivers" in result.skipped_steps


def test_inactive_zram_only_warns(fake_run, ctx, system):
    _fake_snapper(fake_run, system)
    fake_run.respond(["swapon"], stdout="")

    result = run_pipeline(ctx=ctx, steps=build_configure_steps())

    assert result.warned_steps == ["31_verify_zram"]
    assert "95_cleanup_clone" in result.skipped_steps


def test_cleanup_removes_agreed_checkout(fake_run, ctx, tmp_path):
    clone = tmp_path / "hyprarch"
    (clone / "assets").mkdir(parents=True)
    ctx = replace(ctx, config=replace(ctx.config, clone_dir=clone))

    result = run_pipeline(ctx=ctx, steps=[CleanupCloneStep()])

    assert result.ran_steps == ["95_cleanup_clone"]
    assert not clone.exists()


def test_initramfs_rebuilt_after_failed_rebuild(fake_run, ctx, system):
    attempts = []

    def mkinitcpio(argv, inp):
        attempts.append(argv)
        if len(attempts) == 1:
            return 1, "", "==> ERROR: module not found"
        return 0, "", ""

    fake_run.respond_with(["sudo", "mkinitcpio"], mkinitcpio)
    steps = [PatchBootConfigStep(), RebuildInitramfsStep()]

    with pytest.raises(FatalStepError) as exc:
        run_pipeline(ctx=ctx, steps=steps)
    assert exc.value.step_id == "62_rebuild_initramfs"
    assert "plymouth block encrypt" in (system / "etc/mkinitcpio.conf").read_text()

    result = run_pipeline(ctx=ctx, steps=steps)

    assert result.skipped_steps == ["61_patch_boot_config"]
    assert result.ran_steps == ["62_rebuild_initramfs"]
    assert len(attempts) == 2


def test_dry_run_boot_patch_never_calls_sudo_to_read(fake_run, ctx, system):
    ctx = replace(ctx, dry_run=True)

    result = run_pipeline(ctx=ctx, steps=[PatchBootConfigStep(), RebuildInitramfsStep()])

    assert result.ran_steps == ["61_patch_boot_config", "62_rebuild_initramfs"]
    assert fake_run.calls == []
    assert "plymouth" not in (system / "etc/mkinitcpio.conf").read_text()
