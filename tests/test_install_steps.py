from pathlib import Path

import pytest

from hyprarch_installer.context import InstallContext
from hyprarch_installer.errors import FatalStepError
from hyprarch_installer.install import build_install_steps
from hyprarch_installer.lib.storage import FDISK_SCRIPT, SUBVOLUMES
from hyprarch_installer.pipeline import run_pipeline

UUID = "0f1e2d3c-4b5a-6978-8796-a5b4c3d2e1f0"
FSTAB = "UUID=abc / btrfs rw,noatime,compress=zstd,subvol=/@ 0 0\n"


@pytest.fixture
def target(paths):
    root = Path(paths.target_root)
    efi = root / "usr/share/limine/BOOTX64.EFI"
    efi.parent.mkdir(parents=True)
    efi.write_bytes(b"MZ")
    (root / "etc").mkdir()
    (root / "etc/mkinitcpio.conf").write_text("HOOKS=(base udev autodetect block filesystems fsck)\n")
    (root / "etc/sudoers").write_text("# %wheel ALL=(ALL:ALL) ALL\n")
    return root


@pytest.fixture
def ctx(provisioning, manifest, paths):
    return InstallContext(config=provisioning, manifest=manifest, paths=paths)


def _index(commands, prefix):
    for i, c in enumerate(commands):
        if c.startswith(prefix):
            return i
    raise AssertionError(f"{prefix!r} never ran")


def test_full_install_on_virtio_disk(fake_run, ctx, target):
    fake_run.respond(["blkid"], stdout=UUID + "\n")
    fake_run.respond(["genfstab"], stdout=FSTAB)

    result = run_pipeline(ctx=ctx, steps=build_install_steps())

    assert result.skipped_steps == []
    cmds = fake_run.commands()
    order = [
        "timedatectl set-ntp true",
        "fdisk /dev/vda",
        "cryptsetup luksFormat --type luks2 --batch-mode /dev/vda2 -",
        "cryptsetup open /dev/vda2 root -",
        "mkfs.fat -F32 /dev/vda1",
        f"mkfs.btrfs -f {ctx.paths.mapper_device}",
        "pacman-key --init",
        f"pacstrap -K {ctx.target_root} base linux",
        f"genfstab -U {ctx.target_root}",
        "blkid -s UUID -o value /dev/vda2",
        f"arch-chroot {ctx.target_root} mkinitcpio -P",
        f"arch-chroot {ctx.target_root} systemctl enable NetworkManager",
    ]
    positions = [_index(cmds, p) for p in order]
    assert positions == sorted(positions)

    fdisk = fake_run.calls[_index(cmds, "fdisk")]
    assert fdisk.input == FDISK_SCRIPT

    created = [c for c in cmds if c.startswith("btrfs subvolume create")]
    assert [c.rsplit("/", 1)[1] for c in created] == [sv.name for sv in SUBVOLUMES]
    assert f"mount /dev/vda1 {ctx.target_root}/boot" in cmds

    pacstrap = cmds[_index(cmds, "pacstrap")]
    assert "amd-ucode" not in pacstrap and "intel-ucode" not in pacstrap

    assert (target / "etc/fstab").read_text() == FSTAB
    assert (target / "etc/hostname").read_text() == "archlinux\n"
    assert "127.0.1.1   archlinux.localdomain archlinux" in (target / "etc/hosts").read_text()
    assert (target / "etc/sudoers").read_text() == "%wheel ALL=(ALL:ALL) ALL\n"
    assert "block encrypt filesystems" in (target / "etc/mkinitcpio.conf").read_text()
    assert f"cryptdevice=UUID={UUID}:root" in (target / "boot/limine.conf").read_text()
    assert (target / "boot/EFI/BOOT/BOOTX64.EFI").read_bytes() == b"MZ"


def test_secrets_only_travel_on_stdin(fake_run, ctx, target):
    fake_run.respond(["blkid"], stdout=UUID)

    run_pipeline(ctx=ctx, steps=build_install_steps())

    for call in fake_run.calls:
        argv = " ".join(call.argv)
        assert "hunter2" not in argv
        assert "correct horse" not in argv
    stdin = [c.input for c in fake_run.calls if c.input]
    assert "correct horse" in stdin
    assert "root:hunter2\n" in stdin
    assert "alice:hunter2\n" in stdin


def test_rerun_skips_disk_and_keeps_user(fake_run, ctx, target, paths, monkeypatch):
    Path(paths.mapper_device).touch()
    (target / "etc/passwd").write_text("root:x:0:0::/root:/bin/bash\nalice:x:1000:1000::/home/alice:/bin/bash\n")
    fake_run.respond(["cryptsetup", "status"], stdout="/dev/mapper/root is active.\n  type:    LUKS2\n  device:  /dev/vda2\n")
    fake_run.respond(["blkid"], stdout=UUID)
    monkeypatch.setattr("hyprarch_installer.install.step_20_disk.is_mountpoint", lambda p: True)

    result = run_pipeline(ctx=ctx, steps=build_install_steps())

    assert result.skipped_steps == [
        "20_partition_disk",
        "22_encrypt_root",
        "24_open_luks",
        "26_format_filesystems",
        "28_create_subvolumes",
        "30_mount_subvolumes",
    ]
    cmds = fake_run.commands()
    assert not any(c.startswith(("fdisk", "cryptsetup luksFormat", "mkfs")) for c in cmds)
    assert not any("useradd" in c for c in cmds)
    assert any(c.endswith("chpasswd") for c in cmds)


def test_open_volume_on_another_disk_is_not_trusted(fake_run, ctx, target, paths):
    Path(paths.mapper_device).touch()
    fake_run.respond(["cryptsetup", "status"], stdout="  device:  /dev/sdb2\n")
    fake_run.respond(["blkid"], stdout=UUID)

    result = run_pipeline(ctx=ctx, steps=build_install_steps())

    assert "20_partition_disk" in result.ran_steps


def test_failed_pacstrap_halts_before_fstab(fake_run, ctx, target):
    fake_run.respond(["pacstrap"], rc=1, stderr="error: failed retrieving file")

    with pytest.raises(FatalStepError) as exc:
        run_pipeline(ctx=ctx, steps=build_install_steps())

    assert exc.value.step_id == "55_install_base"
    assert exc.value.last_completed == "50_init_keyring"
    assert not any(c.startswith("genfstab") for c in fake_run.commands())


def test_missing_uuid_is_fatal_in_chroot_stage(fake_run, ctx, target):
    fake_run.respond(["blkid"], stdout="")

    with pytest.raises(FatalStepError) as exc:
        run_pipeline(ctx=ctx, steps=build_install_steps())

    assert exc.value.step_id == "70_configure_target"
    assert not any("arch-chroot" in c for c in fake_run.commands())


def test_dry_run_touches_nothing(fake_run, provisioning, manifest, paths):
    ctx = InstallContext(config=provisioning, manifest=manifest, paths=paths, dry_run=True)

    result = run_pipeline(ctx=ctx, steps=build_install_steps())

    assert fake_run.calls == []
    assert "70_configure_target" in result.ran_steps
    assert not Path(paths.target("/etc/fstab")).exists()


def test_rerun_finishes_a_partial_mount(fake_run, ctx, target, paths, monkeypatch):
    # Only the top-level @ survived the previous run; /boot never got the ESP.
    Path(paths.mapper_device).touch()
    fake_run.respond(["cryptsetup", "status"], stdout="  device:  /dev/vda2\n")
    fake_run.respond(["blkid"], stdout=UUID)

    def only_root(path):
        return path == ctx.target_root

    monkeypatch.setattr("hyprarch_installer.install.step_20_disk.is_mountpoint", only_root)
    monkeypatch.setattr("hyprarch_installer.lib.storage.is_mountpoint", only_root)

    result = run_pipeline(ctx=ctx, steps=build_install_steps())

    assert "26_format_filesystems" in result.skipped_steps
    assert "28_create_subvolumes" in result.skipped_steps
    assert "30_mount_subvolumes" in result.ran_steps
    cmds = fake_run.commands()
    assert f"mount /dev/vda1 {ctx.target_root}/boot" in cmds
    assert not any(c.startswith("mount") and c.endswith(f" {ctx.target_root}") for c in cmds)
    assert not any(c.startswith(("mkfs", "btrfs subvolume create")) for c in cmds)
    assert _index(cmds, "mount /dev/vda1") < _index(cmds, "pacstrap")
