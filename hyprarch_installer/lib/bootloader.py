from __future__ import annotations

import logging
import shutil
from pathlib import Path

from ..render import render_limine_conf
from .chroot import chroot_cmd
from .files import write_file
from .pkg import chroot_pacman_install

logger = logging.getLogger(__name__)

LIMINE_EFI_SOURCE = "usr/share/limine/BOOTX64.EFI"
LIMINE_EFI_DEST = "boot/EFI/BOOT/BOOTX64.EFI"


def install_limine(
    *,
    target_root: str,
    luks_uuid: str,
    mapper_name: str = "root",
    dry_run: bool = False,
) -> None:
    """Install Limine into the target and write its config for the encrypted root."""

    chroot_pacman_install(target_root, ["limine"], dry_run=dry_run)

    root = Path(target_root)
    write_file(root / "boot/limine.conf", render_limine_conf(luks_uuid, mapper_name=mapper_name), dry_run=dry_run)

    src = root / LIMINE_EFI_SOURCE
    dst = root / LIMINE_EFI_DEST
    if dry_run:
        logger.info("Would copy %s -> %s", str(src), str(dst))
    else:
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dst)
    logger.info("Limine installed (luks_uuid=%s)", luks_uuid)


def regenerate_initramfs(target_root: str, *, dry_run: bool = False) -> None:
    chroot_cmd(target_root, ["mkinitcpio", "-P"], dry_run=dry_run)
