"""Run operations for yoctobox.

Handles the main build workflow: prerequisites, image resolution, container
setup, the build itself and container teardown.
"""

from __future__ import annotations

import signal
from contextlib import contextmanager
from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel

from ..build_config import BuildConfig
from ..container import BuildContainer
from ..logging import get_logger
from ..paths import HomeFiles, SupportFiles
from ..prereqs import check_prerequisites, check_user
from .build import ensure_image
from .cleanup import remove_project_containers
from .utils import show_project_revision

if TYPE_CHECKING:
    from collections.abc import Iterator

console = Console(stderr=True)
logger = get_logger(__name__)


def _raise_exit(signum: int, frame: object) -> None:
    raise SystemExit(128 + signum)


@contextmanager
def exit_on_sigterm() -> Iterator[None]:
    """Turn SIGTERM into SystemExit so cleanup in finally blocks still runs."""
    previous = signal.signal(signal.SIGTERM, _raise_exit)
    try:
        yield
    finally:
        signal.signal(signal.SIGTERM, previous)


def log_build_parameters(config: BuildConfig) -> None:
    logger.info("Running build with the following parameters:")
    logger.info("TARGET:     %s", config.target)
    logger.info("MACHINE:    %s", config.machine)
    logger.info("REPO:       %s", config.src_dir)
    logger.info("DL_DIR:     %s", config.downloads_dir)
    logger.info("BUILD_DIR:  %s", config.output_dir)


def run_in_container(container: BuildContainer) -> int:
    """Start the provisioned container, run the build and stop it again."""
    log_build_parameters(container.config)
    container.start()
    try:
        return container.execute()
    finally:
        container.stop()


def run(config: BuildConfig) -> int:
    """Run a complete build.

    Returns:
        Exit status of the build command inside the container.

    Raises:
        YoctoboxError: On any fatal condition.
    """
    logger.info("Starting build workflow: project=%s, target=%s", config.project, config.target)

    user = check_user()
    files = SupportFiles(support_dir=config.support_dir, project=config.project)
    home = HomeFiles.for_user(config.project)
    check_prerequisites(config, files, home)

    container: BuildContainer | None = None
    with exit_on_sigterm():
        try:
            show_project_revision(config.src_dir)

            remove_project_containers(user.uid, config.project, files.container_stamp)
            image, image_id = ensure_image(files)

            console.print(
                Panel.fit(
                    f"[bold]{config.project}[/bold] → {image.tag}\n"
                    f"[dim]{config.target} for {config.machine}[/dim]",
                    border_style="blue",
                )
            )

            container = BuildContainer(
                config=config,
                files=files,
                home=home,
                user=user,
                image=image,
                image_id=image_id,
            )
            container.create()
            container.provision()
            return run_in_container(container)
        finally:
            # Teardown runs for every exit path once prerequisites passed
            if config.keep_container:
                logger.info("Keeping container as requested")
            else:
                remove_project_containers(user.uid, config.project, files.container_stamp)
                if container is not None:
                    container.mark_removed()
