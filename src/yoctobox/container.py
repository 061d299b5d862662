"""Build container lifecycle for yoctobox.

One disposable container is used per invocation. It moves strictly forward
through ABSENT -> CREATED -> PROVISIONED -> STARTED -> EXECUTING -> STOPPED
-> REMOVED; any failed step that is not cleanup raises ContainerError.
"""

from __future__ import annotations

import re
import shlex
from dataclasses import dataclass, field
from enum import Enum

from . import docker
from .build_config import BuildConfig
from .constants import (
    CONTAINER_HOME,
    CONTAINER_SHELL,
    CONTAINER_SRC_DIR,
    CONTAINER_USER,
    DOCKER_COMMAND_TIMEOUT,
    DOCKER_EXEC_TIMEOUT,
)
from .errors import ContainerError, DockerNotFoundError, DockerTimeoutError
from .image import ImageDescriptor
from .logging import get_logger, get_output_logger
from .paths import HomeFiles, SupportFiles, container_downloads_dir, container_output_dir
from .prereqs import HostUser

logger = get_logger(__name__)


class ContainerState(str, Enum):
    """Lifecycle states of the build container."""

    ABSENT = "absent"
    CREATED = "created"
    PROVISIONED = "provisioned"
    STARTED = "started"
    EXECUTING = "executing"
    STOPPED = "stopped"
    REMOVED = "removed"


def container_name_prefix(uid: int, project: str) -> str:
    """Prefix shared by every container of a user's project."""
    return f"{uid}-{project}-"


def container_name_filter(uid: int, project: str) -> str:
    """Docker name filter matching every container of a user's project."""
    return "^/?" + re.escape(container_name_prefix(uid, project))


def get_container_name(uid: int, project: str, digest: str) -> str:
    """Deterministic container name: one container per user, project and image."""
    return f"{container_name_prefix(uid, project)}{digest}"


@dataclass
class BuildContainer:
    """A single build container bound to one image and one BuildConfig."""

    config: BuildConfig
    files: SupportFiles
    home: HomeFiles
    user: HostUser
    image: ImageDescriptor
    image_id: str
    container_id: str | None = None
    state: ContainerState = field(default=ContainerState.ABSENT)

    @property
    def name(self) -> str:
        return get_container_name(self.user.uid, self.config.project, self.image.digest)

    @property
    def downloads_mount(self) -> str:
        return container_downloads_dir(self.config.project)

    # -- helpers ---------------------------------------------------------

    def _expect(self, *states: ContainerState) -> None:
        if self.state not in states:
            expected = ", ".join(s.value for s in states)
            raise ContainerError(
                f"Container {self.name} is {self.state.value}, expected {expected}"
            )

    def _require_id(self) -> str:
        if not self.container_id:
            raise ContainerError("Unable to fetch container")
        return self.container_id

    def _docker(self, cmd: list[str], error: str, timeout: float = DOCKER_COMMAND_TIMEOUT) -> None:
        logger.info("Running command %s", shlex.join(cmd))
        try:
            result = docker.safe_docker_run(cmd, timeout=timeout)
        except (DockerNotFoundError, DockerTimeoutError) as e:
            raise ContainerError(f"{error}: {e}") from e
        if result.returncode != 0:
            detail = (result.stderr or result.stdout or "").strip()
            raise ContainerError(f"{error}: {detail}" if detail else error)

    def _exec(self, args: list[str], error: str) -> None:
        cid = self._require_id()
        self._docker(
            ["docker", "container", "exec", cid, *args], error, timeout=DOCKER_EXEC_TIMEOUT
        )

    # -- lifecycle -------------------------------------------------------

    def create_args(self) -> list[str]:
        """Arguments for ``docker container create``."""
        return [
            "docker",
            "container",
            "create",
            "--cidfile",
            str(self.files.container_stamp),
            "--tty",
            "--interactive",
            "--volume",
            f"{self.config.src_dir}:{CONTAINER_SRC_DIR}",
            "--volume",
            f"{self.config.downloads_dir}:{self.downloads_mount}",
            "--volume",
            f"{self.home.bash_history}:{CONTAINER_HOME}/.bash_history",
            "--volume",
            f"{self.home.netrc}:{CONTAINER_HOME}/.netrc",
            "--volume",
            f"{self.home.dotssh}:{CONTAINER_HOME}/.ssh",
            "--volume",
            f"{self.home.dotsvn}:{CONTAINER_HOME}/.subversion",
            "--name",
            self.name,
            self.image_id,
            CONTAINER_SHELL,
        ]

    def create(self) -> str:
        """Create the container and read back its id from the cid stamp file."""
        self._expect(ContainerState.ABSENT)
        logger.info("Creating container using image %s", self.image_id)

        self._docker(self.create_args(), "Failed to create docker container")

        try:
            container_id = self.files.container_stamp.read_text(encoding="utf-8").strip()
        except OSError as e:
            raise ContainerError(f"Failed to get container: {e}") from e
        if not container_id:
            raise ContainerError("Failed to get container")

        self.container_id = container_id
        self.state = ContainerState.CREATED
        return container_id

    def provisioning_commands(self) -> list[tuple[list[str], str]]:
        """Commands run as root to mirror the host user into the container."""
        user = CONTAINER_USER
        owner = f"{user}:{user}"
        return [
            (
                ["/usr/sbin/groupadd", "-g", str(self.user.gid), user],
                "Failed to create group in container",
            ),
            (
                [
                    "/usr/sbin/useradd",
                    "-d",
                    CONTAINER_HOME,
                    "-u",
                    str(self.user.uid),
                    "-g",
                    str(self.user.gid),
                    "-s",
                    CONTAINER_SHELL,
                    user,
                ],
                "Failed to create user in container",
            ),
            (["chown", owner, f"{CONTAINER_HOME}/"], "Failed to change ownership of home dir"),
            (
                [
                    "find",
                    "/etc/skel/",
                    "-type",
                    "f",
                    "-exec",
                    "install",
                    "-m",
                    "0644",
                    "-o",
                    user,
                    "-g",
                    user,
                    "{}",
                    f"{CONTAINER_HOME}/",
                    ";",
                ],
                "Failed to copy skel for container user",
            ),
            (
                ["/bin/chown", owner, f"{self.downloads_mount}/"],
                "Failed to change ownership of mount points",
            ),
        ]

    def provision(self) -> None:
        """Start the container and set up the build user inside it."""
        self._expect(ContainerState.CREATED)
        cid = self._require_id()
        logger.info("Setting up the container %s", cid)

        self._docker(["docker", "container", "start", cid], "Failed to start container")
        for args, error in self.provisioning_commands():
            self._exec(args, error)

        self.state = ContainerState.PROVISIONED
        logger.info("Container %s is ready", cid)

    def start(self) -> None:
        self._expect(ContainerState.PROVISIONED, ContainerState.STOPPED)
        cid = self._require_id()
        self._docker(["docker", "container", "start", cid], "Failed to start container")
        self.state = ContainerState.STARTED

    def build_script(self) -> str:
        """Shell line that initialises the build environment and runs the command."""
        init_script = f"{CONTAINER_SRC_DIR}/poky/oe-init-build-env"
        out_dir = container_output_dir(self.config.project)
        return (
            f". {shlex.quote(init_script)} {shlex.quote(out_dir)}; "
            f"{shlex.join(self.config.build_command())}"
        )

    def exec_args(self) -> list[str]:
        """Arguments for the ``docker container exec`` running the build."""
        cid = self._require_id()
        cmd = ["docker", "container", "exec"]
        if self.config.interactive:
            cmd.append("-it")
        cmd.extend(
            [
                "--user",
                CONTAINER_USER,
                "--workdir",
                CONTAINER_HOME,
                "--env",
                f"TEMPLATECONF={CONTAINER_SRC_DIR}/conf",
                "--env",
                f"MACHINE={self.config.machine}",
                "--env",
                f"DL_DIR={self.downloads_mount}",
                cid,
                CONTAINER_SHELL,
                "-c",
                self.build_script(),
            ]
        )
        return cmd

    def execute(self) -> int:
        """Run the build (or interactive shell) and return its exit status."""
        self._expect(ContainerState.STARTED)
        cmd = self.exec_args()
        logger.info("Running command %s", shlex.join(cmd))
        self.state = ContainerState.EXECUTING

        try:
            if self.config.interactive:
                result = docker.safe_docker_run(cmd, timeout=None, capture_output=False)
                return result.returncode
            output = get_output_logger()
            return docker.run_docker_streaming(cmd, output.info)
        except KeyboardInterrupt:
            logger.warning("Interrupted")
            return 130  # Standard Ctrl+C code
        except DockerNotFoundError as e:
            raise ContainerError(f"Failed to run build: {e}") from e

    def stop(self) -> bool:
        """Stop the container. Failure is logged but not fatal."""
        cid = self._require_id()
        logger.info("Stopping container")
        stopped = docker.stop_container(cid)
        if not stopped:
            logger.error("Failed to stop container %s", cid)
        self.state = ContainerState.STOPPED
        return stopped

    def mark_removed(self) -> None:
        self.state = ContainerState.REMOVED
