"""CLI utilities for yoctobox.

Project revision reporting via git.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from rich.console import Console

from ..constants import DOCKER_COMMAND_TIMEOUT
from ..logging import get_logger

console = Console(stderr=True, highlight=False)
logger = get_logger(__name__)


def _git(args: list[str], cwd: Path) -> subprocess.CompletedProcess[str] | None:
    """Run a git command in cwd, or None if git could not run."""
    try:
        return subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
            timeout=DOCKER_COMMAND_TIMEOUT,
        )
    except FileNotFoundError:
        logger.warning("Git not found in PATH")
    except subprocess.TimeoutExpired:
        logger.warning("git %s timed out", " ".join(args))
    return None


def is_tree_dirty(src_dir: Path) -> bool:
    """True if the working tree has unstaged changes."""
    result = _git(["diff", "--quiet"], src_dir)
    return result is not None and result.returncode != 0


def get_head_revision(src_dir: Path) -> str | None:
    result = _git(["rev-parse", "HEAD"], src_dir)
    if result is None or result.returncode != 0:
        return None
    return result.stdout.strip() or None


def show_project_revision(src_dir: Path) -> str | None:
    """Print the state of the source tree and log the revision being built.

    Returns:
        HEAD revision with a ``-dirty`` suffix for modified trees, or None if
        the revision could not be determined.
    """
    logger.info("Checking project revision")
    dirty = is_tree_dirty(src_dir)

    status = _git(["status", "-sb"], src_dir)
    if status is not None and status.returncode == 0:
        console.print(status.stdout.rstrip(), markup=False)
        console.print()

    if dirty:
        submodules = _git(["submodule", "foreach", "git status -sb; echo"], src_dir)
        if submodules is not None and submodules.returncode == 0:
            console.print(submodules.stdout.rstrip(), markup=False)
            console.print()

    head = get_head_revision(src_dir)
    if head is None:
        logger.warning("Unable to determine HEAD revision of %s", src_dir)
        return None

    revision = f"{head}-dirty" if dirty else head
    logger.info("HEAD revision: %s", revision)
    return revision
