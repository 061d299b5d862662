"""Build operations for yoctobox.

Resolves the build environment image: reuses the image tagged with the
current content digest when it exists, builds it otherwise.
"""

from __future__ import annotations

import shlex
from pathlib import Path

from .. import docker
from ..errors import ImageBuildError
from ..image import (
    ImageDescriptor,
    describe_image,
    get_tz_data,
    read_image_version,
    write_image_version,
)
from ..logging import get_logger, get_output_logger
from ..paths import SupportFiles

logger = get_logger(__name__)


def build_args(image: ImageDescriptor, files: SupportFiles, tz_data: str) -> list[str]:
    """Arguments for ``docker image build``."""
    return [
        "docker",
        "image",
        "build",
        "--iidfile",
        str(files.image_stamp),
        "--force-rm",
        "--build-arg",
        f"BASELINE={image.base}",
        "--build-arg",
        f"EXTRA_PACKAGES={image.extra_packages}",
        "--build-arg",
        f"TZ_DATA={tz_data}",
        "--file",
        str(files.dockerfile),
        "--tag",
        image.tag,
        str(files.docker_dir),
    ]


def _read_stamp(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError as e:
        raise ImageBuildError(f"Failed to read image id from {path}: {e}") from e
    finally:
        path.unlink(missing_ok=True)


def build_image(image: ImageDescriptor, files: SupportFiles) -> str:
    """Build a fresh image tagged ``project:digest``.

    Returns:
        The id of the new image.

    Raises:
        ImageBuildError: If the build fails.
    """
    logger.info("Building docker image %s based on %s", image.tag, image.base)
    logger.info("Extra packages: %s", image.extra_packages)

    cmd = build_args(image, files, get_tz_data())
    logger.info("Running command %s", shlex.join(cmd))
    try:
        returncode = docker.run_docker_streaming(cmd, get_output_logger().info)
    except docker.DockerNotFoundError as e:
        raise ImageBuildError(f"Failed to create docker image: {e}") from e

    if returncode != 0:
        files.image_stamp.unlink(missing_ok=True)
        raise ImageBuildError(f"Failed to create docker image (exit {returncode})")

    image_id = _read_stamp(files.image_stamp)
    if not image_id:
        raise ImageBuildError("Failed to create docker image: no image id reported")
    return image_id


def find_image(image: ImageDescriptor) -> str | None:
    """Id of an existing image tagged with the descriptor's digest."""
    image_ids = docker.list_image_ids(image.tag)
    if image_ids is None:
        logger.warning("Unable to list images, assuming %s is not available", image.tag)
        return None
    return image_ids[0] if image_ids else None


def ensure_image(files: SupportFiles) -> tuple[ImageDescriptor, str]:
    """Resolve the build environment image, building it if needed.

    Returns:
        The image descriptor and the id of the image to run.

    Raises:
        PrerequisiteError: If the image inputs cannot be read or the version
            file cannot be written.
        ImageBuildError: If a required build fails.
    """
    logger.info("Calculating image hash")
    image = describe_image(files)
    logger.info("Image hash is %s", image.digest)

    previous = read_image_version(files.image_version)
    if previous is not None and previous != image.digest:
        logger.info("Image inputs changed since last run (was %s)", previous)

    logger.info("Checking availability of existing images")
    image_id = find_image(image)
    if image_id is None:
        logger.info("No available images found. Building a new image")
        image_id = build_image(image, files)
    else:
        logger.info("Reusing image %s (%s)", image.tag, image_id)

    write_image_version(files.image_version, image.digest)
    return image, image_id
