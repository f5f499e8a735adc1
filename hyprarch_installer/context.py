from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .config import ProvisioningConfig, SessionConfig
from .lib.env import PATHS, Paths
from .lib.manifests import PackageManifest


@dataclass(frozen=True)
class InstallContext:
    config: ProvisioningConfig
    manifest: PackageManifest
    paths: Paths = PATHS
    dry_run: bool = False
    # Known only once the root partition is encrypted; set for the chroot stage.
    luks_uuid: Optional[str] = None

    @property
    def target_root(self) -> str:
        return self.paths.target_root


@dataclass(frozen=True)
class SessionContext:
    config: SessionConfig
    manifest: PackageManifest
    paths: Paths = PATHS
    dry_run: bool = False
