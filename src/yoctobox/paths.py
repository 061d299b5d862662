"""Host and container path layout for yoctobox builds.

Support directory (``<source>/scripts`` by default):
    container.base              base image reference
    packages.list               extra packages installed in the image
    docker/Dockerfile           image recipe
    image_<project>.version     digest of the last resolved image
    image_<project>.stamp       image id written by ``docker image build``
    container_<project>.stamp   container id written by ``docker container create``

Home directory files bind-mounted into the container:
    ~/.<project>_bash_history, ~/.netrc, ~/.ssh, ~/.subversion
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .constants import (
    CONTAINER_BASE_FILE,
    CONTAINER_HOME,
    CONTAINER_SRC_DIR,
    DOCKER_DIR_NAME,
    PACKAGES_FILE,
    SUPPORT_DIR_NAME,
)


@dataclass(frozen=True)
class SupportFiles:
    """Files in the support directory that drive image and container setup."""

    support_dir: Path
    project: str

    @classmethod
    def for_source(cls, source_dir: Path, project: str) -> SupportFiles:
        return cls(support_dir=source_dir / SUPPORT_DIR_NAME, project=project)

    @property
    def docker_dir(self) -> Path:
        return self.support_dir / DOCKER_DIR_NAME

    @property
    def dockerfile(self) -> Path:
        return self.docker_dir / "Dockerfile"

    @property
    def packages_list(self) -> Path:
        return self.support_dir / PACKAGES_FILE

    @property
    def container_base(self) -> Path:
        return self.support_dir / CONTAINER_BASE_FILE

    @property
    def image_version(self) -> Path:
        return self.support_dir / f"image_{self.project}.version"

    @property
    def image_stamp(self) -> Path:
        return self.support_dir / f"image_{self.project}.stamp"

    @property
    def container_stamp(self) -> Path:
        return self.support_dir / f"container_{self.project}.stamp"

    def required(self) -> list[Path]:
        """Files that must exist before an image can be resolved."""
        return [self.container_base, self.packages_list, self.dockerfile]


@dataclass(frozen=True)
class HomeFiles:
    """Host files and directories mounted into the builder's home."""

    home: Path
    project: str

    @classmethod
    def for_user(cls, project: str) -> HomeFiles:
        return cls(home=Path.home(), project=project)

    @property
    def bash_history(self) -> Path:
        return self.home / f".{self.project}_bash_history"

    @property
    def netrc(self) -> Path:
        return self.home / ".netrc"

    @property
    def dotssh(self) -> Path:
        return self.home / ".ssh"

    @property
    def dotsvn(self) -> Path:
        return self.home / ".subversion"


def default_downloads_dir(project: str) -> Path:
    """Default shared downloads location on the host."""
    return Path.home() / f"{project}-downloads"


def host_output_dir(source_dir: Path, project: str) -> Path:
    """Build directory on the host (inside the mounted source tree)."""
    return source_dir / f"build_{project}"


def container_output_dir(project: str) -> str:
    """Build directory as seen from inside the container."""
    return f"{CONTAINER_SRC_DIR}/build_{project}"


def container_downloads_dir(project: str) -> str:
    """Mount point of the shared downloads directory inside the container."""
    return f"{CONTAINER_HOME}/{project}-downloads"
