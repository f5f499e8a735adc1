from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Paths:
    # Where the new system is assembled during install mode.
    target_root: str = "/mnt"
    # Root of the running system in configure mode; tests point it elsewhere.
    system_root: str = "/"
    mapper_name: str = "root"
    mapper_dir: str = "/dev/mapper"
    install_state_default: str = "/var/lib/hyprarch/install-state.json"
    install_log_default: str = "/var/log/hyprarch-install.log"

    @property
    def mapper_device(self) -> str:
        return f"{self.mapper_dir}/{self.mapper_name}"

    def target(self, rel: str) -> Path:
        return Path(self.target_root) / rel.lstrip("/")

    def system(self, rel: str) -> Path:
        return Path(self.system_root) / rel.lstrip("/")


PATHS = Paths()


def user_state_dir(home: Path) -> Path:
    return home / ".local/state/hyprarch"


def user_log_default(home: Path) -> str:
    return str(home / ".cache/hyprarch/configure.log")
