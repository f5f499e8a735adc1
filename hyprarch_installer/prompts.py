"""Interactive collection of the run's configuration.

All questions are asked up front; once a config record is returned no step
prompts again. Input/output callables are injectable so the collectors can be
driven by scripted answers.
"""

from __future__ import annotations

import getpass
import re
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

from .config import CpuVendor, GpuVendor, ProvisioningConfig, SessionConfig, looks_temporary
from .errors import ValidationError
from .lib.block import is_block_device

T = TypeVar("T")

USERNAME_RE = re.compile(r"^[a-z_][a-z0-9_-]{0,31}$")
HOSTNAME_RE = re.compile(r"^[A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?$")

CPU_MENU: List[Tuple[str, CpuVendor]] = [
    ("AMD", CpuVendor.AMD),
    ("Intel", CpuVendor.INTEL),
    ("None (VM/Other)", CpuVendor.NONE),
]

GPU_MENU: List[Tuple[str, GpuVendor]] = [
    ("AMD", GpuVendor.AMD),
    ("NVIDIA", GpuVendor.NVIDIA),
    ("Intel", GpuVendor.INTEL),
    ("None (VM/Other)", GpuVendor.NONE),
]


class Prompter:
    def __init__(
        self,
        input_fn: Callable[[str], str] = input,
        secret_fn: Callable[[str], str] = getpass.getpass,
        output_fn: Callable[[str], None] = print,
    ) -> None:
        self._input = input_fn
        self._secret = secret_fn
        self.say = output_fn

    def ask(self, prompt: str, default: Optional[str] = None) -> str:
        if default:
            answer = self._input(f"{prompt} [{default}]: ").strip()
            return answer or default
        return self._input(f"{prompt}: ").strip()

    def ask_secret(self, prompt: str) -> str:
        """Ask twice without echo; repeat until both entries match."""

        while True:
            first = self._secret(f"{prompt}: ")
            second = self._secret("Confirm password: ")
            if not first:
                self.say("Password must not be empty. Please try again.")
            elif first != second:
                self.say("Passwords do not match. Please try again.")
            else:
                return first

    def choose(self, title: str, options: Sequence[Tuple[str, T]]) -> T:
        self.say(title)
        for i, (label, _) in enumerate(options, start=1):
            self.say(f"  {i}) {label}")
        answer = self._input(f"Enter choice [1-{len(options)}]: ").strip()
        if not answer.isdigit() or not 1 <= int(answer) <= len(options):
            raise ValidationError(f"Invalid choice: {answer!r}")
        return options[int(answer) - 1][1]

    def confirm(self, prompt: str, *, default_yes: bool) -> bool:
        hint = "[Y/n]" if default_yes else "[y/N]"
        answer = self._input(f"{prompt} {hint}: ").strip().lower()
        if answer in {"y", "yes"}:
            return True
        if answer in {"n", "no"}:
            return False
        return default_yes

    def confirm_exact(self, prompt: str, expected: str = "YES") -> bool:
        return self._input(f"{prompt}: ").strip() == expected


def validate_disk(disk: str, block_check: Optional[Callable[[str], bool]] = None) -> str:
    if not disk:
        raise ValidationError("A target disk is required")
    if not (block_check or is_block_device)(disk):
        raise ValidationError(f"Disk {disk} does not exist or is not a block device")
    return disk


def validate_hostname(hostname: str) -> str:
    if not HOSTNAME_RE.match(hostname):
        raise ValidationError(f"Invalid hostname: {hostname!r}")
    return hostname


def validate_username(username: str) -> str:
    if not username:
        raise ValidationError("A username is required")
    if username == "root" or not USERNAME_RE.match(username):
        raise ValidationError(f"Invalid username: {username!r}")
    return username


def collect_install_config(
    prompter: Prompter,
    *,
    disks: Sequence[str] = (),
    block_check: Optional[Callable[[str], bool]] = None,
) -> ProvisioningConfig:
    if disks:
        prompter.say("Available disks:")
        for row in disks:
            prompter.say(f"  {row}")

    disk = validate_disk(prompter.ask("Enter disk to install on (e.g., /dev/vda, /dev/sda)"), block_check)
    hostname = validate_hostname(prompter.ask("Enter hostname", "archlinux"))
    username = validate_username(prompter.ask("Enter username"))
    user_password = prompter.ask_secret("Enter user password")
    luks_password = prompter.ask_secret("Enter disk encryption password")
    cpu = prompter.choose("Select CPU type:", CPU_MENU)

    return ProvisioningConfig(
        disk=disk,
        hostname=hostname,
        username=username,
        user_password=user_password,
        luks_password=luks_password,
        cpu=cpu,
    )


def confirm_install(prompter: Prompter, cfg: ProvisioningConfig) -> None:
    prompter.say("Installation Summary:")
    prompter.say(f"  Disk: {cfg.disk}")
    prompter.say(f"  Hostname: {cfg.hostname}")
    prompter.say(f"  Username: {cfg.username}")
    prompter.say(f"  CPU Type: {cfg.cpu.value}")
    prompter.say(f"WARNING: This will COMPLETELY ERASE all data on {cfg.disk}!")
    prompter.say("WARNING: The disk will be partitioned, encrypted, and formatted.")
    if not prompter.confirm_exact("Type 'YES' (in uppercase) to confirm and begin installation"):
        raise ValidationError("Installation cancelled by user")


def collect_session_config(
    prompter: Prompter,
    *,
    username: str,
    home: Path,
    assets_dir: Path,
    checkout_dir: Optional[Path] = None,
) -> SessionConfig:
    gpu = prompter.choose("Select GPU type:", GPU_MENU)

    clone_dir: Optional[Path] = None
    if looks_temporary(checkout_dir):
        if prompter.confirm(f"Remove {checkout_dir} when configuration finishes?", default_yes=True):
            clone_dir = checkout_dir

    return SessionConfig(
        username=validate_username(username),
        home=home,
        gpu=gpu,
        assets_dir=assets_dir,
        clone_dir=clone_dir,
    )


def confirm_configure(prompter: Prompter, cfg: SessionConfig) -> None:
    prompter.say("Configuration Summary:")
    prompter.say(f"  GPU Type: {cfg.gpu.value}")
    if cfg.clone_dir:
        prompter.say(f"  Cleanup: {cfg.clone_dir}")
    if not prompter.confirm("Proceed with configuration?", default_yes=True):
        raise ValidationError("Configuration cancelled by user")
