"""Build environment image description and content hashing.

The image tag is derived from a SHA-1 digest over every input that affects
what ends up in the image. Two runs with identical inputs resolve to the same
``project:digest`` tag and therefore reuse the same image.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from pathlib import Path

from .constants import DEFAULT_TZ_AREA, DEFAULT_TZ_ZONE, IMAGE_RECIPE_VERSION
from .errors import PrerequisiteError
from .logging import get_logger
from .paths import SupportFiles

logger = get_logger(__name__)


@dataclass(frozen=True)
class ImageDescriptor:
    """Build environment image for a project."""

    project: str
    base: str
    packages: tuple[str, ...]
    digest: str

    @property
    def tag(self) -> str:
        return f"{self.project}:{self.digest}"

    @property
    def extra_packages(self) -> str:
        """Package manifest as passed to the Dockerfile."""
        return " ".join(self.packages)


def compute_image_digest(
    packages_text: str,
    dockerfile_text: str,
    base_text: str,
    recipe_version: str = IMAGE_RECIPE_VERSION,
) -> str:
    """Hash the image inputs into a hex digest.

    Inputs are joined with newlines in a fixed order, so the digest is
    deterministic and changes with any byte of any input.
    """
    data = "\n".join([recipe_version, packages_text, dockerfile_text, base_text]) + "\n"
    return hashlib.sha1(data.encode("utf-8")).hexdigest()


def _read_input(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise PrerequisiteError(f"Unable to read {path}: {e}") from e


def describe_image(files: SupportFiles) -> ImageDescriptor:
    """Read the image inputs from the support dir and compute the descriptor.

    Raises:
        PrerequisiteError: If an input file cannot be read or the base image
            reference is empty.
    """
    packages_text = _read_input(files.packages_list)
    dockerfile_text = _read_input(files.dockerfile)
    base_text = _read_input(files.container_base)

    base = base_text.strip()
    if not base:
        raise PrerequisiteError(f"No base image set in {files.container_base}")

    return ImageDescriptor(
        project=files.project,
        base=base,
        packages=tuple(packages_text.split()),
        digest=compute_image_digest(packages_text, dockerfile_text, base_text),
    )


def read_image_version(path: Path) -> str | None:
    """Digest recorded by the previous run, if any."""
    try:
        return path.read_text(encoding="utf-8").strip() or None
    except OSError:
        return None


def write_image_version(path: Path, digest: str) -> None:
    """Record the digest of the image used by this run.

    Raises:
        PrerequisiteError: If the version file cannot be written.
    """
    try:
        path.write_text(f"{digest}\n", encoding="utf-8")
    except OSError as e:
        raise PrerequisiteError(f"Unable to write {path}: {e}") from e


def get_tz_data(timezone_file: Path = Path("/etc/timezone")) -> str:
    """debconf selections preseeding tzdata with the host timezone."""
    try:
        timezone = timezone_file.read_text(encoding="utf-8").strip()
    except OSError:
        timezone = ""

    area, sep, zone = timezone.partition("/")
    if not sep:
        zone = area
    area = area or DEFAULT_TZ_AREA
    zone = zone or DEFAULT_TZ_ZONE
    return (
        f"tzdata tzdata/Areas select {area}\n"
        f"tzdata tzdata/Zones/{area} select {zone}"
    )
