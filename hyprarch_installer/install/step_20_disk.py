from __future__ import annotations

import logging
from pathlib import Path

from ..context import InstallContext
from ..lib.block import is_mountpoint
from ..lib.storage import (
    create_subvolumes,
    format_filesystems,
    luks_backing_device,
    luks_format,
    luks_open,
    mount_subvolumes,
    mount_targets,
    partition_disk,
)
from ..pipeline import BaseStep

logger = logging.getLogger(__name__)


def _volume_open(ctx: InstallContext) -> bool:
    """True when our mapping is open on this run's root partition."""

    if not Path(ctx.paths.mapper_device).exists():
        return False
    return luks_backing_device(ctx.paths.mapper_name) == ctx.config.root_partition


def _target_mounted(ctx: InstallContext) -> bool:
    return _volume_open(ctx) and is_mountpoint(ctx.target_root)


def _layout_mounted(ctx: InstallContext) -> bool:
    """Every subvolume and the ESP mounted, not just the top-level @."""

    return _volume_open(ctx) and all(is_mountpoint(p) for p in mount_targets(ctx.target_root))


class PartitionDiskStep(BaseStep):
    step_id = "20_partition_disk"
    label = "Partition target disk"

    def already_satisfied(self, ctx: InstallContext) -> bool:
        # An open volume on our root partition means this session already
        # partitioned and encrypted the disk; never wipe it a second time.
        return _volume_open(ctx)

    def run(self, ctx: InstallContext) -> None:
        partition_disk(ctx.config.disk, dry_run=ctx.dry_run)
        logger.info(
            "Partitioned %s (efi=%s root=%s)",
            ctx.config.disk,
            ctx.config.efi_partition,
            ctx.config.root_partition,
        )


class EncryptRootStep(BaseStep):
    step_id = "22_encrypt_root"
    label = "Initialize LUKS2 on root partition"

    def already_satisfied(self, ctx: InstallContext) -> bool:
        return _volume_open(ctx)

    def run(self, ctx: InstallContext) -> None:
        luks_format(ctx.config.root_partition, ctx.config.luks_password, dry_run=ctx.dry_run)


class OpenLuksStep(BaseStep):
    step_id = "24_open_luks"
    label = "Open encrypted volume"

    def already_satisfied(self, ctx: InstallContext) -> bool:
        return _volume_open(ctx)

    def run(self, ctx: InstallContext) -> None:
        luks_open(
            ctx.config.root_partition,
            ctx.paths.mapper_name,
            ctx.config.luks_password,
            dry_run=ctx.dry_run,
        )
        logger.info("Encrypted partition opened as %s", ctx.paths.mapper_device)


class FormatFilesystemsStep(BaseStep):
    step_id = "26_format_filesystems"
    label = "Format EFI (FAT32) and root (Btrfs)"

    def already_satisfied(self, ctx: InstallContext) -> bool:
        return _target_mounted(ctx)

    def run(self, ctx: InstallContext) -> None:
        format_filesystems(ctx.config.efi_partition, ctx.paths.mapper_device, dry_run=ctx.dry_run)


class CreateSubvolumesStep(BaseStep):
    step_id = "28_create_subvolumes"
    label = "Create Btrfs subvolumes"

    def already_satisfied(self, ctx: InstallContext) -> bool:
        return _target_mounted(ctx)

    def run(self, ctx: InstallContext) -> None:
        create_subvolumes(ctx.paths.mapper_device, ctx.target_root, dry_run=ctx.dry_run)


class MountSubvolumesStep(BaseStep):
    step_id = "30_mount_subvolumes"
    label = "Mount subvolumes and EFI partition"

    def already_satisfied(self, ctx: InstallContext) -> bool:
        return _layout_mounted(ctx)

    def run(self, ctx: InstallContext) -> None:
        mount_subvolumes(
            ctx.paths.mapper_device,
            ctx.config.efi_partition,
            ctx.target_root,
            dry_run=ctx.dry_run,
        )
