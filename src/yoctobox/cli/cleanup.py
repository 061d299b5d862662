"""Cleanup operations for yoctobox.

Handles removal of project containers and images. Every step here is best
effort: failures are logged as warnings and never abort the run.
"""

from __future__ import annotations

from pathlib import Path

from rich.console import Console

from .. import docker
from ..container import container_name_filter
from ..logging import get_logger

console = Console(stderr=True)
logger = get_logger(__name__)


def remove_project_containers(uid: int, project: str, container_stamp: Path) -> int:
    """Stop and remove every container of the user's project.

    Also removes the container id stamp file, so the next
    ``docker container create --cidfile`` does not trip over it.

    Returns:
        Number of containers removed.
    """
    logger.info("Cleaning up old containers")

    container_ids = docker.list_container_ids(container_name_filter(uid, project))
    if container_ids is None:
        logger.warning("Unable to list containers for project %s", project)
        container_ids = []

    removed = 0
    for container_id in container_ids:
        logger.info("Stopping and removing container %s", container_id)
        docker.stop_container(container_id)
        if docker.remove_container(container_id, force=True):
            removed += 1
        else:
            logger.warning("Could not stop old container %s", container_id)

    try:
        container_stamp.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Failed to remove %s: %s", container_stamp, e)

    return removed


def remove_project_images(project: str) -> int:
    """Remove every image built for the project.

    Returns:
        Number of images removed.
    """
    logger.info('Cleaning up images for project "%s"', project)

    image_ids = docker.list_image_ids(project)
    if image_ids is None:
        logger.warning("Unable to list images for project %s", project)
        return 0
    if not image_ids:
        logger.info("No images found on this host")
        return 0

    logger.info("Found %d images on this host: %s", len(image_ids), " ".join(image_ids))
    removed = 0
    for image_id in image_ids:
        logger.info("Removing image %s", image_id)
        if docker.remove_image(image_id):
            removed += 1
        else:
            logger.warning("Failed to remove image %s", image_id)

    console.print(f"[green]✓ Removed {removed} of {len(image_ids)} image(s)[/green]")
    return removed
