from __future__ import annotations

import logging
import os

from .errors import PreflightError
from .lib.env import Paths
from .lib.net import is_online
from .lib.services import is_enabled

logger = logging.getLogger(__name__)


def require_root() -> None:
    if os.geteuid() != 0:
        raise PreflightError("This installer must be run as root")


def require_not_root() -> None:
    if os.geteuid() == 0:
        raise PreflightError("Configuration must run as the normal user, not root")


def require_uefi(paths: Paths) -> None:
    if not paths.system("/sys/firmware/efi/efivars").is_dir():
        raise PreflightError("BIOS mode detected; UEFI boot is required")
    logger.info("UEFI mode detected")


def require_network() -> None:
    if not is_online():
        raise PreflightError("No network connection; configure networking and try again")
    logger.info("Network connection established")


def require_base_install(paths: Paths) -> None:
    if not paths.system("/boot/limine.conf").exists():
        raise PreflightError("Limine config not found; run hyprarch-install first")
    if not is_enabled("NetworkManager"):
        raise PreflightError("NetworkManager is not enabled; run hyprarch-install first")
    logger.info("Base installation detected")


def install_preflight(paths: Paths) -> None:
    require_root()
    require_uefi(paths)
    require_network()


def configure_preflight(paths: Paths) -> None:
    require_not_root()
    require_network()
    require_base_install(paths)
