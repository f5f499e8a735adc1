from typing import List

from ..pipeline import Step
from .step_10_system_update import SystemUpdateStep
from .step_20_repositories import EnableMultilibStep, InstallYayStep
from .step_30_zram import ConfigureZramStep, VerifyZramStep
from .step_40_packages import (
    InstallAurPackagesStep,
    InstallBluetoothStep,
    InstallGpuDriversStep,
    InstallOfficialPackagesStep,
    InstallProvidersStep,
)
from .step_50_snapper import (
    CreateSnapperConfigsStep,
    LimineSnapperSyncConfStep,
    SnapperCleanupTimerStep,
    SnapperRetentionStep,
    SyncSnapshotsStep,
)
from .step_60_plymouth import InstallPlymouthThemeStep, PatchBootConfigStep, RebuildInitramfsStep
from .step_70_session import AutologinStep, DeployUwsmConfigStep, HyprlandConfigStep, UwsmLaunchStep
from .step_80_services import GnomeKeyringStep, PipewireStep, SshStep
from .step_90_cleanup import CleanupCloneStep


def build_configure_steps() -> List[Step]:
    return [
        SystemUpdateStep(),
        InstallYayStep(),
        EnableMultilibStep(),
        ConfigureZramStep(),
        VerifyZramStep(),
        InstallProvidersStep(),
        InstallOfficialPackagesStep(),
        InstallGpuDriversStep(),
        InstallBluetoothStep(),
        InstallAurPackagesStep(),
        CreateSnapperConfigsStep(),
        SnapperRetentionStep(),
        SnapperCleanupTimerStep(),
        LimineSnapperSyncConfStep(),
        SyncSnapshotsStep(),
        InstallPlymouthThemeStep(),
        PatchBootConfigStep(),
        RebuildInitramfsStep(),
        HyprlandConfigStep(),
        GnomeKeyringStep(),
        PipewireStep(),
        SshStep(),
        AutologinStep(),
        UwsmLaunchStep(),
        DeployUwsmConfigStep(),
        CleanupCloneStep(),
    ]


__all__ = ["build_configure_steps"]
