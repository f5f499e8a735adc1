from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional


class CpuVendor(str, Enum):
    AMD = "amd"
    INTEL = "intel"
    NONE = "none"


class GpuVendor(str, Enum):
    AMD = "amd"
    NVIDIA = "nvidia"
    INTEL = "intel"
    NONE = "none"


def partition_path(disk: str, n: int) -> str:
    # nvme devices use a p infix (nvme0n1 -> nvme0n1p1)
    if "nvme" in disk:
        return f"{disk}p{n}"
    return f"{disk}{n}"


def looks_temporary(path: Optional[Path]) -> bool:
    """A checkout worth deleting: under /tmp, or a hyprarch clone."""

    if path is None:
        return False
    s = str(path)
    return s.startswith("/tmp") or "hyprarch" in s


@dataclass(frozen=True)
class ProvisioningConfig:
    """Everything install mode needs, collected before the first step runs.

    The two secrets are kept out of repr() and public_dict() so the record can
    be logged and persisted without leaking them.
    """

    disk: str
    username: str
    user_password: str = field(repr=False)
    luks_password: str = field(repr=False)
    cpu: CpuVendor = CpuVendor.NONE
    hostname: str = "archlinux"
    timezone: str = "America/New_York"
    locale: str = "en_US.UTF-8"
    keymap: str = "us"

    @property
    def efi_partition(self) -> str:
        return partition_path(self.disk, 1)

    @property
    def root_partition(self) -> str:
        return partition_path(self.disk, 2)

    def public_dict(self) -> Dict[str, Any]:
        return {
            "disk": self.disk,
            "hostname": self.hostname,
            "username": self.username,
            "cpu": self.cpu.value,
            "timezone": self.timezone,
            "locale": self.locale,
            "keymap": self.keymap,
        }


@dataclass(frozen=True)
class SessionConfig:
    """Configure-mode choices for the unprivileged user after first boot."""

    username: str
    home: Path
    gpu: GpuVendor = GpuVendor.NONE
    # Checkout holding plymouth-theme/ and uwsm/.
    assets_dir: Path = Path(".")
    # Temporary clone removed at the end of a run, if it looks temporary.
    clone_dir: Optional[Path] = None

    @property
    def uwsm_source_dir(self) -> Path:
        return self.assets_dir / "uwsm/.config/uwsm"

    @property
    def plymouth_theme_dir(self) -> Path:
        return self.assets_dir / "plymouth-theme"

    def public_dict(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "home": str(self.home),
            "gpu": self.gpu.value,
            "assets_dir": str(self.assets_dir),
            "clone_dir": str(self.clone_dir) if self.clone_dir else None,
        }
