from __future__ import annotations

import logging
import shutil
from pathlib import Path

from .command import sudo

logger = logging.getLogger(__name__)


def copy_tree(src: str, dst: str, *, dry_run: bool = False) -> int:
    """Copy files from src into dst (user-owned), overwriting. Returns the file count."""

    source = Path(src)
    dest = Path(dst)
    if not source.is_dir():
        raise FileNotFoundError(src)

    files = [p for p in sorted(source.rglob("*")) if p.is_file()]
    if dry_run:
        logger.info("Would copy %d files %s -> %s", len(files), str(source), str(dest))
        return len(files)

    for item in files:
        out = dest / item.relative_to(source)
        out.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(item, out)
    logger.info("Copied %d files %s -> %s", len(files), str(source), str(dest))
    return len(files)


def copy_tree_privileged(src: str, dst: str, *, dry_run: bool = False) -> None:
    """Copy a directory's contents into a root-owned location.

    cp -T makes re-runs overwrite dst instead of nesting src inside it.
    """

    if not Path(src).is_dir():
        raise FileNotFoundError(src)
    sudo(["mkdir", "-p", dst], dry_run=dry_run)
    sudo(["cp", "-rT", src, dst], dry_run=dry_run)
