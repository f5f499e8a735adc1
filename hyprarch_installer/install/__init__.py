from typing import List

from ..pipeline import Step
from .step_10_sync_clock import SyncClockStep
from .step_20_disk import (
    CreateSubvolumesStep,
    EncryptRootStep,
    FormatFilesystemsStep,
    MountSubvolumesStep,
    OpenLuksStep,
    PartitionDiskStep,
)
from .step_50_base_system import GenerateFstabStep, InitKeyringStep, InstallBaseStep
from .step_70_configure_target import ConfigureTargetStep, build_target_steps


def build_install_steps() -> List[Step]:
    return [
        SyncClockStep(),
        PartitionDiskStep(),
        EncryptRootStep(),
        OpenLuksStep(),
        FormatFilesystemsStep(),
        CreateSubvolumesStep(),
        MountSubvolumesStep(),
        InitKeyringStep(),
        InstallBaseStep(),
        GenerateFstabStep(),
        ConfigureTargetStep(),
    ]


__all__ = [
    "build_install_steps",
    "build_target_steps",
    "SyncClockStep",
    "PartitionDiskStep",
    "EncryptRootStep",
    "OpenLuksStep",
    "FormatFilesystemsStep",
    "CreateSubvolumesStep",
    "MountSubvolumesStep",
    "InitKeyringStep",
    "InstallBaseStep",
    "GenerateFstabStep",
    "ConfigureTargetStep",
]
