"""Docker operations for yoctobox.

This module contains Docker-specific utilities and operations,
separated from CLI logic for better modularity. Commands are always passed
as argument lists, never as shell strings.
"""

from __future__ import annotations

import subprocess
from typing import TYPE_CHECKING

from .constants import DOCKER_COMMAND_TIMEOUT
from .errors import DockerError, DockerNotFoundError, DockerTimeoutError
from .logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

__all__ = [
    "DockerError",
    "DockerNotFoundError",
    "DockerTimeoutError",
    "safe_docker_run",
    "run_docker_streaming",
    "check_docker_status",
    "list_image_ids",
    "list_container_ids",
    "remove_image",
    "stop_container",
    "remove_container",
]


def _short(cmd: Sequence[str]) -> str:
    return " ".join(cmd[:4]) + ("..." if len(cmd) > 4 else "")


def safe_docker_run(
    cmd: Sequence[str],
    *,
    timeout: float | None = DOCKER_COMMAND_TIMEOUT,
    capture_output: bool = True,
    check: bool = False,
) -> subprocess.CompletedProcess[str]:
    """Run a Docker command with consistent error handling.

    Args:
        cmd: Command to run (should start with 'docker').
        timeout: Command timeout in seconds, None for no limit.
        capture_output: Capture stdout/stderr if True, inherit stdio otherwise.
        check: Raise CalledProcessError on non-zero exit.

    Returns:
        CompletedProcess with command result.

    Raises:
        DockerNotFoundError: If docker command is not found.
        DockerTimeoutError: If command times out.
        subprocess.CalledProcessError: If check=True and command fails.
    """
    cmd_str = _short(cmd)
    logger.debug("Running Docker command: %s", cmd_str)
    try:
        result = subprocess.run(
            list(cmd),
            capture_output=capture_output,
            text=True,
            check=check,
            timeout=timeout,
        )
        logger.debug("Docker command completed: exit=%d", result.returncode)
        return result
    except FileNotFoundError as e:
        logger.debug("Docker not found in PATH: %s", cmd_str)
        raise DockerNotFoundError(f"Docker not found in PATH. Command: {cmd_str}") from e
    except subprocess.TimeoutExpired as e:
        logger.debug("Docker command timed out after %ss: %s", timeout, cmd_str)
        raise DockerTimeoutError(
            f"Docker command timed out after {timeout}s. Command: {cmd_str}"
        ) from e


def run_docker_streaming(cmd: Sequence[str], on_line: Callable[[str], None]) -> int:
    """Run a Docker command and relay its merged output line by line.

    Args:
        cmd: Command to run (should start with 'docker').
        on_line: Called with every output line, trailing newline stripped.

    Returns:
        Process exit status.

    Raises:
        DockerNotFoundError: If docker command is not found.
    """
    cmd_str = _short(cmd)
    logger.debug("Streaming Docker command: %s", cmd_str)
    try:
        proc = subprocess.Popen(
            list(cmd),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
        )
    except FileNotFoundError as e:
        raise DockerNotFoundError(f"Docker not found in PATH. Command: {cmd_str}") from e

    try:
        assert proc.stdout is not None
        for line in iter(proc.stdout.readline, ""):
            on_line(line.rstrip("\n"))
        returncode = proc.wait()
    except BaseException:
        proc.kill()
        proc.wait()
        raise
    finally:
        if proc.stdout:
            proc.stdout.close()

    logger.debug("Docker command completed: exit=%d", returncode)
    return returncode


def check_docker_status() -> bool:
    """Check if Docker daemon is responsive.

    Returns:
        True if Docker is running and responsive, False otherwise.
    """
    try:
        result = safe_docker_run(["docker", "info"])
        return result.returncode == 0
    except (DockerNotFoundError, DockerTimeoutError):
        return False


def _split_ids(stdout: str) -> list[str]:
    """Split docker -q output into unique ids, keeping order."""
    ids: list[str] = []
    for line in stdout.splitlines():
        line = line.strip()
        if line and line not in ids:
            ids.append(line)
    return ids


def list_image_ids(reference: str) -> list[str] | None:
    """Get ids of images matching a reference filter.

    Args:
        reference: Reference filter, e.g. ``project`` or ``project:tag``.

    Returns:
        List of image ids (possibly empty), or None if the lookup failed.
    """
    try:
        result = safe_docker_run(
            ["docker", "image", "ls", "-a", "-q", "--filter", f"reference={reference}"]
        )
    except (DockerNotFoundError, DockerTimeoutError):
        return None
    if result.returncode != 0:
        return None
    return _split_ids(result.stdout)


def list_container_ids(name_filter: str) -> list[str] | None:
    """Get ids of containers (running or stopped) matching a name filter.

    Args:
        name_filter: Docker name filter (regular expression).

    Returns:
        List of container ids (possibly empty), or None if the lookup failed.
    """
    try:
        result = safe_docker_run(
            ["docker", "container", "ls", "-a", "-q", "--filter", f"name={name_filter}"]
        )
    except (DockerNotFoundError, DockerTimeoutError):
        return None
    if result.returncode != 0:
        return None
    return _split_ids(result.stdout)


def remove_image(image_id: str, *, force: bool = False) -> bool:
    """Remove a Docker image.

    Args:
        image_id: Image ID or name to remove.
        force: Force removal if True.

    Returns:
        True if image was removed, False otherwise.
    """
    cmd = ["docker", "image", "rm"]
    if force:
        cmd.append("-f")
    cmd.append(image_id)
    try:
        return safe_docker_run(cmd).returncode == 0
    except (DockerNotFoundError, DockerTimeoutError):
        return False


def stop_container(container_id: str) -> bool:
    """Stop a Docker container.

    Returns:
        True if the container was stopped, False otherwise.
    """
    try:
        return safe_docker_run(["docker", "container", "stop", container_id]).returncode == 0
    except (DockerNotFoundError, DockerTimeoutError):
        return False


def remove_container(container_id: str, *, force: bool = True) -> bool:
    """Remove a Docker container.

    Args:
        container_id: Container name or ID to remove.
        force: Force removal if True.

    Returns:
        True if container was removed, False otherwise.
    """
    cmd = ["docker", "container", "rm"]
    if force:
        cmd.append("-f")
    cmd.append(container_id)
    try:
        return safe_docker_run(cmd).returncode == 0
    except (DockerNotFoundError, DockerTimeoutError):
        return False
