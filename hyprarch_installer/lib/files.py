from __future__ import annotations

import logging
from pathlib import Path

from .command import sudo

logger = logging.getLogger(__name__)


def read_text(path: Path) -> str:
    """File contents, or "" when the file does not exist yet."""

    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""


def write_file(path: Path, contents: str, *, dry_run: bool = False) -> None:
    if dry_run:
        logger.info("Would write %s", str(path))
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(contents, encoding="utf-8")
    logger.info("Wrote %s", str(path))


def write_root_file(path: Path, contents: str, *, dry_run: bool = False) -> None:
    """Write a root-owned file from an unprivileged session.

    Contents travel over sudo tee's stdin, never through argv.
    """

    sudo(["mkdir", "-p", str(path.parent)], dry_run=dry_run)
    sudo(["tee", str(path)], input_text=contents, dry_run=dry_run)
    logger.info("Wrote %s (privileged)", str(path))


def read_root_file(path: Path, *, dry_run: bool = False) -> str:
    """Read a file the session user may not be allowed to read ("" if missing).

    A dry run never calls sudo: it reads what the user can read and reports
    anything else as unknown ("").
    """

    if dry_run:
        try:
            return read_text(path)
        except PermissionError:
            logger.info("Cannot read %s without sudo (dry run)", str(path))
            return ""
    r = sudo(["cat", str(path)], check=False)
    return r.stdout if r.returncode == 0 else ""


def file_matches(path: Path, contents: str) -> bool:
    return path.is_file() and read_text(path) == contents
