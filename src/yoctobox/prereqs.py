"""Host prerequisite checks for yoctobox.

Validates the host before any container operation: the invoking user, the
required tools and support files. Also creates the files and directories
that are bind-mounted into the container, so Docker does not create them
root-owned.
"""

from __future__ import annotations

import grp
import os
import pwd
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from . import docker
from .build_config import BuildConfig
from .errors import PrerequisiteError
from .logging import get_logger
from .paths import HomeFiles, SupportFiles

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

logger = get_logger(__name__)

REQUIRED_TOOLS = ("docker", "git")


@dataclass(frozen=True)
class HostUser:
    """Identity mirrored into the container as the build user."""

    uid: int
    gid: int
    username: str
    groupname: str


def _name_or_id(lookup: Callable[[int], Sequence[str]], ident: int) -> str:
    try:
        return lookup(ident)[0]
    except KeyError:
        return str(ident)


def get_host_user() -> HostUser:
    """Identify the invoking user."""
    uid = os.getuid()
    gid = os.getgid()
    return HostUser(
        uid=uid,
        gid=gid,
        username=_name_or_id(pwd.getpwuid, uid),
        groupname=_name_or_id(grp.getgrgid, gid),
    )


def check_user() -> HostUser:
    """Refuse to run as root and report the identity used for the build.

    Raises:
        PrerequisiteError: If running with uid or gid 0.
    """
    logger.info("Checking user permissions")
    user = get_host_user()

    if user.uid == 0 or user.gid == 0:
        raise PrerequisiteError("You should not run this script as root!")

    logger.info("Running the script as %s", user.username)
    logger.info("UID: %d (%s)", user.uid, user.username)
    logger.info("GID: %d (%s)", user.gid, user.groupname)
    return user


def check_tools() -> None:
    """Make sure the external tools are available.

    Raises:
        PrerequisiteError: If a tool is missing or Docker is not responding.
    """
    for tool in REQUIRED_TOOLS:
        logger.info("Looking for utility %s", tool)
        if shutil.which(tool) is None:
            raise PrerequisiteError(f"{tool} is required but not available.")

    if not docker.check_docker_status():
        raise PrerequisiteError("Docker daemon is not responding. Start Docker and try again.")


def check_support_files(files: SupportFiles) -> None:
    """Make sure the image inputs exist.

    Raises:
        PrerequisiteError: If a support file is missing.
    """
    for path in files.required():
        logger.info("Checking file %s", path.name)
        if not path.is_file():
            raise PrerequisiteError(f"{path} not found")


def _ensure_file(path: Path, reason: str) -> None:
    if path.is_file():
        return
    logger.warning('Touching "%s" %s', path, reason)
    try:
        path.touch()
    except OSError as e:
        logger.warning('Failed to touch "%s": %s', path, e)


def _ensure_dir(path: Path, reason: str) -> None:
    if path.is_dir():
        return
    logger.warning('Creating "%s" %s', path, reason)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning('Failed to create "%s": %s', path, e)


def prepare_mount_sources(config: BuildConfig, home: HomeFiles) -> None:
    """Create the host side of every bind mount.

    Raises:
        PrerequisiteError: If the downloads directory cannot be created.
    """
    if not config.downloads_dir.is_dir():
        logger.warning('Creating "%s" to avoid bind mount issues', config.downloads_dir)
        try:
            config.downloads_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PrerequisiteError(
                f'Unable to create downloads location "{config.downloads_dir}": {e}'
            ) from e

    _ensure_file(home.bash_history, "for container bash history")
    _ensure_file(home.netrc, "to avoid bind mount issues")
    _ensure_dir(home.dotssh, "to avoid bind mount issues")
    _ensure_dir(home.dotsvn, "to avoid bind mount issues")


def check_prerequisites(config: BuildConfig, files: SupportFiles, home: HomeFiles) -> None:
    """Run every host check needed before touching Docker.

    Raises:
        PrerequisiteError: On the first failed check.
    """
    logger.info("Checking prerequisites")
    check_tools()
    check_support_files(files)
    prepare_mount_sources(config, home)
    logger.info("Prerequisites OK")
