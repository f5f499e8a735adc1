from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Tuple

from .block import is_mountpoint
from .command import run_cmd

logger = logging.getLogger(__name__)

BTRFS_MOUNT_OPTS = "noatime,compress=zstd,space_cache=v2"
SWAP_MOUNT_OPTS = "noatime"


@dataclass(frozen=True)
class Subvolume:
    name: str
    mountpoint: str
    compress: bool = True

    @property
    def options(self) -> str:
        opts = BTRFS_MOUNT_OPTS if self.compress else SWAP_MOUNT_OPTS
        return f"{opts},subvol={self.name}"


# Order matters: "@" is mounted first and the rest are mounted inside it.
SUBVOLUMES: Tuple[Subvolume, ...] = (
    Subvolume("@", "/"),
    Subvolume("@home", "/home"),
    Subvolume("@pkg", "/var/cache/pacman/pkg"),
    Subvolume("@log", "/var/log"),
    Subvolume("@swap", "/swap", compress=False),
    Subvolume("@docker", "/var/lib/docker"),
    Subvolume("@libvirt", "/var/lib/libvirt"),
)

ESP_SIZE = "+512M"

# fdisk dialogue: new GPT label, ESP (type 1 = EFI System), root on the rest.
FDISK_SCRIPT = "\n".join(
    [
        "g",
        "n",
        "1",
        "",
        ESP_SIZE,
        "t",
        "1",
        "n",
        "2",
        "",
        "",
        "w",
    ]
) + "\n"


def _under(target_root: str, mountpoint: str) -> str:
    if mountpoint == "/":
        return target_root
    return f"{target_root.rstrip('/')}{mountpoint}"


def partition_disk(disk: str, *, dry_run: bool = False) -> None:
    """Wipe the partition table and create the ESP + root layout."""

    logger.info("Partitioning disk=%s", disk)
    run_cmd(["fdisk", disk], input_text=FDISK_SCRIPT, dry_run=dry_run)
    # Let the kernel and udev catch up with the new table.
    run_cmd(["partprobe", disk], check=False, dry_run=dry_run)
    run_cmd(["udevadm", "settle"], check=False, dry_run=dry_run)


def luks_format(partition: str, passphrase: str, *, dry_run: bool = False) -> None:
    run_cmd(
        ["cryptsetup", "luksFormat", "--type", "luks2", "--batch-mode", partition, "-"],
        input_text=passphrase,
        dry_run=dry_run,
    )


def luks_open(partition: str, name: str, passphrase: str, *, dry_run: bool = False) -> None:
    run_cmd(["cryptsetup", "open", partition, name, "-"], input_text=passphrase, dry_run=dry_run)


def luks_backing_device(name: str) -> str | None:
    """Device behind an open mapping (from `cryptsetup status`), or None."""

    r = run_cmd(["cryptsetup", "status", name], check=False)
    if r.returncode != 0:
        return None
    for line in r.stdout.splitlines():
        key, _, value = line.strip().partition(":")
        if key == "device":
            return value.strip() or None
    return None


def luks_close(name: str, *, dry_run: bool = False) -> None:
    run_cmd(["cryptsetup", "close", name], dry_run=dry_run)


def format_filesystems(efi_partition: str, mapped_device: str, *, dry_run: bool = False) -> None:
    run_cmd(["mkfs.fat", "-F32", efi_partition], dry_run=dry_run)
    run_cmd(["mkfs.btrfs", "-f", mapped_device], dry_run=dry_run)


@contextmanager
def mounted(device: str, mountpoint: str, *, options: str | None = None, dry_run: bool = False) -> Iterator[str]:
    argv = ["mount"]
    if options:
        argv += ["-o", options]
    run_cmd([*argv, device, mountpoint], dry_run=dry_run)
    try:
        yield mountpoint
    finally:
        run_cmd(["umount", mountpoint], dry_run=dry_run)


def create_subvolumes(mapped_device: str, target_root: str, *, dry_run: bool = False) -> None:
    with mounted(mapped_device, target_root, dry_run=dry_run):
        for sv in SUBVOLUMES:
            run_cmd(["btrfs", "subvolume", "create", f"{target_root.rstrip('/')}/{sv.name}"], dry_run=dry_run)
    logger.info("Created %d subvolumes: %s", len(SUBVOLUMES), ", ".join(sv.name for sv in SUBVOLUMES))


def mount_targets(target_root: str) -> List[str]:
    """Every mountpoint mount_subvolumes produces, root first, ESP last."""

    return [_under(target_root, sv.mountpoint) for sv in SUBVOLUMES] + [_under(target_root, "/boot")]


def mount_subvolumes(
    mapped_device: str,
    efi_partition: str,
    target_root: str,
    *,
    dry_run: bool = False,
) -> None:
    """Mount the subvolume layout and the ESP, skipping targets already mounted.

    A previous run may have stopped halfway; the remaining mounts still happen.
    """

    root, rest = SUBVOLUMES[0], SUBVOLUMES[1:]
    if not is_mountpoint(target_root):
        run_cmd(["mount", "-o", root.options, mapped_device, target_root], dry_run=dry_run)

    dirs = [_under(target_root, sv.mountpoint) for sv in rest]
    dirs += [_under(target_root, "/boot"), _under(target_root, "/.snapshots")]
    if not dry_run:
        for d in dirs:
            Path(d).mkdir(parents=True, exist_ok=True)

    for sv in rest:
        target = _under(target_root, sv.mountpoint)
        if is_mountpoint(target):
            logger.info("%s already mounted", target)
            continue
        run_cmd(["mount", "-o", sv.options, mapped_device, target], dry_run=dry_run)

    boot = _under(target_root, "/boot")
    if is_mountpoint(boot):
        logger.info("%s already mounted", boot)
    else:
        run_cmd(["mount", efi_partition, boot], dry_run=dry_run)
    logger.info("Mounted subvolumes under %s", target_root)
