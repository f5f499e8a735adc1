from __future__ import annotations

import argparse
import getpass
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .configure import build_configure_steps
from .context import InstallContext, SessionContext
from .errors import FatalStepError, PreflightError, RequiresRebootError, ValidationError
from .install import build_install_steps
from .lib.block import list_disks
from .lib.command import run_cmd, sudo
from .lib.env import PATHS, Paths, user_log_default, user_state_dir
from .lib.manifests import load_package_manifest
from .lib.storage import luks_close
from .logging_utils import configure_logging
from .pipeline import PipelineResult, Step, run_pipeline
from .preflight import configure_preflight, install_preflight
from .prompts import (
    Prompter,
    collect_install_config,
    collect_session_config,
    confirm_configure,
    confirm_install,
)
from .state_store import ensure_defaults, load_state, reset_run, save_state

logger = logging.getLogger(__name__)

# <checkout>/hyprarch_installer/main.py -> <checkout>
CHECKOUT_DIR = Path(__file__).resolve().parents[1]
DEFAULT_ASSETS_DIR = CHECKOUT_DIR / "assets"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def _start_state(state_path: str, *, mode: str, log_path: str, public_config: Dict[str, Any]) -> Dict[str, Any]:
    state = ensure_defaults(load_state(state_path), mode=mode)
    reset_run(state)
    state["config"] = public_config
    state["execution"]["log_path"] = log_path
    return state


def _report(result: PipelineResult, state: Dict[str, Any]) -> None:
    exe = state.setdefault("execution", {})
    exe.setdefault("summary", {})["ran_steps"] = result.ran_steps
    exe["summary"]["skipped_steps"] = result.skipped_steps
    exe["summary"]["warned_steps"] = result.warned_steps
    logger.info(
        "Finished: %d ran, %d skipped, %d warnings",
        len(result.ran_steps),
        len(result.skipped_steps),
        len(result.warned_steps),
    )
    for w in exe.get("warnings") or []:
        logger.warning("Warning from %s: %s", w["step"], w["warning"])


def _report_fatal(e: FatalStepError) -> None:
    logger.error("Halted at step %s: %s", e.step_id, e.reason)
    logger.error("Last completed step: %s", e.last_completed or "(none)")
    logger.error("The system was left as-is; no changes were rolled back.")


def run_install(
    *,
    state_path: str = PATHS.install_state_default,
    log_path: str = PATHS.install_log_default,
    dry_run: bool = False,
    paths: Paths = PATHS,
    prompter: Optional[Prompter] = None,
    steps_factory: Callable[[], List[Step]] = build_install_steps,
) -> int:
    """Partition, encrypt and install the base system. Returns an exit code."""

    actual_log_path = configure_logging(log_path=log_path)
    prompter = prompter or Prompter()

    try:
        if dry_run:
            logger.info("Dry run: skipping preflight checks")
        else:
            install_preflight(paths)
        cfg = collect_install_config(prompter, disks=list_disks())
        confirm_install(prompter, cfg)
    except (ValidationError, PreflightError) as e:
        logger.error("%s", e)
        return EXIT_FAILURE

    logger.info("Install configuration: %s", cfg.public_dict())
    ctx = InstallContext(config=cfg, manifest=load_package_manifest(), paths=paths, dry_run=dry_run)
    state = _start_state(state_path, mode="install", log_path=actual_log_path, public_config=cfg.public_dict())

    try:
        result = run_pipeline(ctx=ctx, steps=steps_factory(), state=state)
        _report(result, state)
    except FatalStepError as e:
        _report_fatal(e)
        return EXIT_FAILURE
    finally:
        save_state(state_path, state)

    prompter.say("Installation completed successfully!")
    finish_install(prompter, paths, dry_run=dry_run)
    return EXIT_OK


def finish_install(prompter: Prompter, paths: Paths, *, dry_run: bool = False) -> None:
    if prompter.confirm("Reboot now?", default_yes=False):
        run_cmd(["umount", "-R", paths.target_root], dry_run=dry_run)
        luks_close(paths.mapper_name, dry_run=dry_run)
        run_cmd(["reboot"], dry_run=dry_run)
        return
    prompter.say("Installation complete. To reboot manually, run:")
    prompter.say(f"  umount -R {paths.target_root}")
    prompter.say(f"  cryptsetup close {paths.mapper_name}")
    prompter.say("  reboot")


def run_configure(
    *,
    state_path: Optional[str] = None,
    log_path: Optional[str] = None,
    assets_dir: Optional[str] = None,
    dry_run: bool = False,
    paths: Paths = PATHS,
    home: Optional[Path] = None,
    username: Optional[str] = None,
    prompter: Optional[Prompter] = None,
    steps_factory: Callable[[], List[Step]] = build_configure_steps,
) -> int:
    """Post-boot configuration as the unprivileged user. Returns an exit code."""

    home = home or Path.home()
    username = username or getpass.getuser()
    state_path = state_path or str(user_state_dir(home) / "configure-state.json")
    actual_log_path = configure_logging(log_path=log_path or user_log_default(home))
    prompter = prompter or Prompter()

    if assets_dir:
        assets, checkout = Path(assets_dir).resolve(), None
    else:
        # Only a source checkout is a cleanup candidate, never an installed package.
        is_checkout = (CHECKOUT_DIR / "pyproject.toml").is_file()
        assets, checkout = DEFAULT_ASSETS_DIR, CHECKOUT_DIR if is_checkout else None

    try:
        if dry_run:
            logger.info("Dry run: skipping preflight checks")
        else:
            configure_preflight(paths)
        cfg = collect_session_config(
            prompter,
            username=username,
            home=home,
            assets_dir=assets,
            checkout_dir=checkout,
        )
        confirm_configure(prompter, cfg)
    except (ValidationError, PreflightError) as e:
        logger.error("%s", e)
        return EXIT_FAILURE

    logger.info("Session configuration: %s", cfg.public_dict())
    ctx = SessionContext(config=cfg, manifest=load_package_manifest(), paths=paths, dry_run=dry_run)
    state = _start_state(state_path, mode="configure", log_path=actual_log_path, public_config=cfg.public_dict())

    try:
        result = run_pipeline(ctx=ctx, steps=steps_factory(), state=state)
        _report(result, state)
    except RequiresRebootError as e:
        logger.warning("%s", e)
        prompter.say("Kernel was updated. Reboot required before continuing.")
        if prompter.confirm("Reboot now?", default_yes=True):
            prompter.say("After reboot, run hyprarch-configure again to continue.")
            sudo(["reboot"], dry_run=dry_run)
        else:
            prompter.say("Reboot, then run hyprarch-configure again to continue.")
        return EXIT_OK
    except FatalStepError as e:
        _report_fatal(e)
        return EXIT_FAILURE
    finally:
        save_state(state_path, state)

    prompter.say("Configuration completed successfully!")
    if prompter.confirm("Reboot now to test the setup?", default_yes=True):
        sudo(["reboot"], dry_run=dry_run)
    else:
        prompter.say("Configuration complete. Reboot when ready with: sudo reboot")
    return EXIT_OK


def _base_parser(prog: str, description: str) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog=prog, description=description)
    p.add_argument("--state", default=None, help="Path to run record (json|yaml)")
    p.add_argument("--log", default=None, help="Path to log file")
    p.add_argument("--dry-run", action="store_true", help="Log every command without executing it")
    return p


def install_main(argv: Optional[list[str]] = None) -> int:
    p = _base_parser("hyprarch-install", "Install an encrypted Btrfs Arch Linux system (run as root).")
    args = p.parse_args(argv)
    try:
        return run_install(
            state_path=args.state or PATHS.install_state_default,
            log_path=args.log or PATHS.install_log_default,
            dry_run=args.dry_run,
        )
    except KeyboardInterrupt:
        logger.warning("Installation aborted by user")
        return EXIT_INTERRUPTED


def configure_main(argv: Optional[list[str]] = None) -> int:
    p = _base_parser("hyprarch-configure", "Configure the Hyprland desktop (run as your user after first boot).")
    p.add_argument("--assets", default=None, help="Directory holding plymouth-theme/ and uwsm/")
    args = p.parse_args(argv)
    try:
        return run_configure(
            state_path=args.state,
            log_path=args.log,
            assets_dir=args.assets,
            dry_run=args.dry_run,
        )
    except KeyboardInterrupt:
        logger.warning("Configuration aborted by user")
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    raise SystemExit(install_main())
