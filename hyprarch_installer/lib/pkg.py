from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from .chroot import chroot_cmd
from .command import run_cmd, sudo

logger = logging.getLogger(__name__)

YAY_REPO = "https://aur.archlinux.org/yay.git"


def init_keyring(*, dry_run: bool = False) -> None:
    run_cmd(["pacman-key", "--init"], dry_run=dry_run)
    run_cmd(["pacman-key", "--populate", "archlinux"], dry_run=dry_run)


def pacstrap(target_root: str, packages: Sequence[str], *, dry_run: bool = False) -> None:
    if not packages:
        raise ValueError("pacstrap needs at least one package")
    run_cmd(["pacstrap", "-K", target_root, *packages], dry_run=dry_run)


def genfstab(target_root: str, *, dry_run: bool = False) -> str:
    return run_cmd(["genfstab", "-U", target_root], dry_run=dry_run).stdout


def chroot_pacman_install(target_root: str, packages: Sequence[str], *, dry_run: bool = False) -> None:
    if not packages:
        return
    chroot_cmd(target_root, ["pacman", "-S", "--needed", "--noconfirm", *packages], dry_run=dry_run)


def pacman_install(packages: Sequence[str], *, dry_run: bool = False) -> None:
    if not packages:
        return
    sudo(["pacman", "-S", "--needed", "--noconfirm", *packages], dry_run=dry_run)


def pacman_upgrade(*, dry_run: bool = False) -> None:
    sudo(["pacman", "-Syu", "--noconfirm"], dry_run=dry_run)


def pacman_refresh(*, dry_run: bool = False) -> None:
    sudo(["pacman", "-Sy"], dry_run=dry_run)


def yay_install(packages: Sequence[str], *, dry_run: bool = False) -> None:
    if not packages:
        return
    run_cmd(["yay", "-S", "--needed", "--noconfirm", *packages], dry_run=dry_run)


def build_yay(work_dir: str, *, dry_run: bool = False) -> None:
    """Clone and build yay under work_dir (absolute), removing the clone afterwards."""

    clone = Path(work_dir) / "yay"
    pacman_install(["base-devel", "git"], dry_run=dry_run)
    run_cmd(["rm", "-rf", str(clone)], dry_run=dry_run)
    run_cmd(["git", "clone", YAY_REPO, str(clone)], dry_run=dry_run)
    try:
        run_cmd(["makepkg", "-si", "--noconfirm"], cwd=str(clone), dry_run=dry_run)
    finally:
        run_cmd(["rm", "-rf", str(clone)], check=False, dry_run=dry_run)
