"""Generated files and text patches.

Everything here is a pure function of its arguments so the output is
reproducible byte for byte and can be asserted on without touching a system.
Patch functions return the input unchanged when the change is already present.
"""

from __future__ import annotations

import re
from typing import Mapping, Sequence

from .config import ProvisioningConfig

PLYMOUTH_THEME = "hyprarch"
LIMINE_ENTRY_NAME = "HyprArch Linux"

MKINITCPIO_HOOKS = (
    "base",
    "udev",
    "autodetect",
    "microcode",
    "modconf",
    "kms",
    "keyboard",
    "keymap",
    "consolefont",
    "block",
    "encrypt",
    "filesystems",
    "fsck",
)

SNAPPER_RETENTION = {
    "TIMELINE_MIN_AGE": "1800",
    "TIMELINE_LIMIT_HOURLY": "0",
    "TIMELINE_LIMIT_DAILY": "0",
    "TIMELINE_LIMIT_WEEKLY": "0",
    "TIMELINE_LIMIT_MONTHLY": "0",
    "TIMELINE_LIMIT_YEARLY": "0",
    "NUMBER_LIMIT": "10",
    "NUMBER_MIN_AGE": "1800",
}

UWSM_LAUNCH_MARKER = "uwsm start hyprland.desktop"

# Tokyo Night
_LIMINE_THEME = (
    "# Tokyo Night color scheme\n"
    "term_background: 1a1b26\n"
    "backdrop: 1a1b26\n"
    "term_palette: 15161e;f7768e;9ece6a;e0af68;7aa2f7;bb9af7;7dcfff;a9b1d6\n"
    "term_palette_bright: 414868;f7768e;9ece6a;e0af68;7aa2f7;bb9af7;7dcfff;c0caf5\n"
    "term_foreground: c0caf5\n"
    "term_foreground_bright: c0caf5\n"
    "term_background_bright: 24283b\n"
)


def render_hostname(cfg: ProvisioningConfig) -> str:
    return f"{cfg.hostname}\n"


def render_hosts(cfg: ProvisioningConfig) -> str:
    h = cfg.hostname
    return (
        "127.0.0.1   localhost\n"
        "::1         localhost\n"
        f"127.0.1.1   {h}.localdomain {h}\n"
    )


def render_locale_conf(cfg: ProvisioningConfig) -> str:
    return f"LANG={cfg.locale}\n"


def render_vconsole_conf(cfg: ProvisioningConfig) -> str:
    return f"KEYMAP={cfg.keymap}\n"


def ensure_locale_gen(text: str, locale: str) -> str:
    """Make sure '<locale> <charset>' is an active line in locale.gen."""

    charset = locale.split(".", 1)[1] if "." in locale else "UTF-8"
    entry = f"{locale} {charset}"
    for line in text.splitlines():
        if line.strip() == entry:
            return text
    if text and not text.endswith("\n"):
        text += "\n"
    return text + entry + "\n"


def enable_wheel_sudo(text: str) -> str:
    return re.sub(
        r"^# %wheel ALL=\(ALL:ALL\) ALL",
        "%wheel ALL=(ALL:ALL) ALL",
        text,
        flags=re.MULTILINE,
    )


def set_mkinitcpio_hooks(text: str, hooks: Sequence[str] = MKINITCPIO_HOOKS) -> str:
    line = f"HOOKS=({' '.join(hooks)})"
    if re.search(r"^HOOKS=", text, flags=re.MULTILINE):
        return re.sub(r"^HOOKS=.*$", line, text, flags=re.MULTILINE)
    if text and not text.endswith("\n"):
        text += "\n"
    return text + line + "\n"


def insert_plymouth_hook(text: str) -> str:
    """Insert 'plymouth' ahead of 'block encrypt' in the HOOKS line."""

    def _patch(m: re.Match) -> str:
        hooks_line = m.group(0)
        if re.search(r"\bplymouth\b", hooks_line):
            return hooks_line
        return re.sub(r"\bblock encrypt\b", "plymouth block encrypt", hooks_line, count=1)

    return re.sub(r"^HOOKS=.*$", _patch, text, flags=re.MULTILINE)


def render_limine_conf(luks_uuid: str, *, mapper_name: str = "root") -> str:
    if not luks_uuid:
        raise ValueError("LUKS UUID is required for the boot entry")
    cmdline = (
        f"quiet splash cryptdevice=UUID={luks_uuid}:{mapper_name} "
        f"root=/dev/mapper/{mapper_name} rootflags=subvol=@ rw rootfstype=btrfs"
    )
    return (
        "timeout: 3\n"
        "default_entry: 1\n"
        "interface_branding: HyprArch Bootloader\n"
        "interface_branding_color: 2\n"
        "\n"
        f"{_LIMINE_THEME}"
        "\n"
        f"/+{LIMINE_ENTRY_NAME}\n"
        "  //linux\n"
        "    comment: HyprArch\n"
        "    protocol: linux\n"
        "    kernel_path: boot():/vmlinuz-linux\n"
        "    module_path: boot():/initramfs-linux.img\n"
        f"    kernel_cmdline: {cmdline}\n"
    )


def ensure_splash_cmdline(text: str) -> str:
    return re.sub(
        r"^([ \t]*kernel_cmdline:[ \t]*)(?![ \t])(?!quiet splash\b)",
        r"\1quiet splash ",
        text,
        flags=re.MULTILINE,
    )


def uncomment_multilib(text: str) -> str:
    """Uncomment the [multilib] section of pacman.conf, up to its Include line."""

    out = []
    inside = False
    for line in text.splitlines(keepends=True):
        if not inside and line.startswith("#[multilib]"):
            inside = True
        if inside:
            stripped = line[1:] if line.startswith("#") else line
            out.append(stripped)
            if line.startswith("#Include = /etc/pacman.d/mirrorlist"):
                inside = False
        else:
            out.append(line)
    return "".join(out)


def multilib_enabled(text: str) -> bool:
    return re.search(r"^\[multilib\]", text, flags=re.MULTILINE) is not None


def render_zram_generator_conf() -> str:
    return (
        "[zram0]\n"
        "zram-size = ram / 4\n"
        "compression-algorithm = zstd\n"
        "swap-priority = 100\n"
        "fs-type = swap\n"
    )


def set_shell_vars(text: str, values: Mapping[str, str]) -> str:
    """Rewrite KEY="value" assignments; keys that are missing are appended."""

    for key, value in values.items():
        line = f'{key}="{value}"'
        pattern = rf"^{re.escape(key)}=.*$"
        if re.search(pattern, text, flags=re.MULTILINE):
            text = re.sub(pattern, line, text, flags=re.MULTILINE)
        else:
            if text and not text.endswith("\n"):
                text += "\n"
            text += line + "\n"
    return text


def render_limine_snapper_sync_conf() -> str:
    return (
        "# HyprArch Limine-Snapper-Sync Configuration\n"
        "\n"
        "# OS Entry Targeting (must match limine.conf entry name)\n"
        f'TARGET_OS_NAME="{LIMINE_ENTRY_NAME}"\n'
        "\n"
        "# Max Snapshot Entries\n"
        "MAX_SNAPSHOT_ENTRIES=10\n"
        "\n"
        "# Boot Partition Usage Limit\n"
        "LIMIT_USAGE_PERCENT=85\n"
        "\n"
        '# Snapshot Entry Formatting (format 2: "111 │ 2023-12-20 10:59:59")\n'
        "SNAPSHOT_FORMAT_CHOICE=2\n"
        "\n"
        "# Root Paths\n"
        'ROOT_SUBVOLUME_PATH="/@"\n'
        'ROOT_SNAPSHOTS_PATH="/@/.snapshots"\n'
        "\n"
        "# Restore Settings\n"
        "ENABLE_RSYNC_ASK=no\n"
        "SET_SNAPSHOT_AS_DEFAULT=no\n"
    )


def render_hyprland_conf(terminal: str = "ghostty") -> str:
    return (
        "# Minimal HyprArch config - launch terminal on startup and with keybind\n"
        "source = ~/.config/hypr/autostart.conf\n"
        "\n"
        "# Keybindings\n"
        f"bind = SUPER, RETURN, exec, {terminal}\n"
        "bind = SUPER, Q, killactive\n"
        "bind = SUPER, M, exit\n"
        "\n"
        "# Input\n"
        "input {\n"
        "    kb_layout = us\n"
        "}\n"
        "\n"
        "# Monitor (default)\n"
        "monitor = ,preferred,auto,1\n"
    )


def render_hyprland_autostart(terminal: str = "ghostty") -> str:
    return (
        "# Hyprland Autostart Configuration\n"
        "\n"
        "# Polkit authentication agent (required for privilege elevation)\n"
        "exec-once = hyprpolkitagent\n"
        "\n"
        "# Terminal on startup\n"
        f"exec-once = {terminal}\n"
    )


def render_autologin_override(username: str) -> str:
    return (
        "[Service]\n"
        "ExecStart=\n"
        f"ExecStart=-/sbin/agetty -o '-p -f -- \\u' --noclear --autologin {username} %I $TERM\n"
    )


def render_uwsm_launch_snippet() -> str:
    return (
        "\n"
        "# Launch Hyprland on TTY1\n"
        'if [ -z "$DISPLAY" ] && [ "$XDG_VTNR" = 1 ]; then\n'
        f"  exec {UWSM_LAUNCH_MARKER}\n"
        "fi\n"
    )
