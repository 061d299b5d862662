"""CLI package for yoctobox.

This package contains the CLI command and supporting modules:
- run: Build workflow (prerequisites, container lifecycle)
- build: Build environment image resolution
- cleanup: Container and image removal
- utils: Project revision reporting

Lazy Import Strategy:
    The workflow modules are deferred until a build actually runs, which
    keeps --help and --version fast.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.console import Console

from .. import __version__
from ..build_config import BuildConfig
from ..config import load_project_config, resolve_project_name
from ..constants import SUPPORT_DIR_NAME
from ..errors import YoctoboxError
from ..logging import get_logger, set_debug

console = Console(stderr=True)
logger = get_logger(__name__)

__all__ = ["cli", "main"]


class BuildCommand(click.Command):
    """Click command whose usage errors exit with status 1 like any fatal error."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            e.exit_code = 1
            raise


@click.command(cls=BuildCommand, context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("target", required=False)
@click.option(
    "--bitbake-shell",
    is_flag=True,
    help="Interactive mode, provides a shell in the container",
)
@click.option("--dry-run", "-n", is_flag=True, help="Run bitbake in dry run mode")
@click.option(
    "--continue",
    "-k",
    "continue_on_error",
    is_flag=True,
    help="Don't stop at first error, continue until the end",
)
@click.option(
    "--downloads",
    metavar="PATH",
    help="Shared downloads location (default: ~/<project>-downloads)",
)
@click.option(
    "--keep-container",
    is_flag=True,
    help="Don't remove the container after the build finished",
)
@click.option(
    "--cleanup-images",
    is_flag=True,
    help="Remove docker images associated with this project and exit",
)
@click.option("--qemu", is_flag=True, help="Generate qemu artifacts instead (emulation)")
@click.option(
    "--source",
    "-C",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project source tree (default: current directory)",
)
@click.option(
    "--init",
    "init_files",
    is_flag=True,
    help=f"Write default Dockerfile, packages.list and container.base to {SUPPORT_DIR_NAME}/",
)
@click.option("--debug", "-d", is_flag=True, help="Verbose logging")
@click.version_option(version=__version__, prog_name="yoctobox")
def cli(
    target: str | None,
    bitbake_shell: bool,
    dry_run: bool,
    continue_on_error: bool,
    downloads: str | None,
    keep_container: bool,
    cleanup_images: bool,
    qemu: bool,
    source: str,
    init_files: bool,
    debug: bool,
) -> None:
    """yoctobox - Run a Yocto/bitbake build in a disposable Docker container.

    When running in non-interactive mode, TARGET is the bitbake target to
    build. It defaults to the project name.
    """
    if debug:
        set_debug(True)

    src_dir = Path(source)
    support_dir = src_dir / SUPPORT_DIR_NAME

    try:
        project_config = load_project_config(support_dir)
        project = resolve_project_name(project_config, src_dir)

        if cleanup_images:
            from .cleanup import remove_project_images

            remove_project_images(project)
            return

        if init_files:
            from ..generator import write_support_files
            from ..paths import SupportFiles

            written = write_support_files(SupportFiles(support_dir=support_dir, project=project))
            console.print(f"[green]✓ Wrote {len(written)} support file(s)[/green]")
            return

        config = BuildConfig.from_cli(
            project=project,
            project_config=project_config,
            src_dir=src_dir,
            support_dir=support_dir,
            target=target,
            downloads=downloads,
            bitbake_shell=bitbake_shell,
            dry_run=dry_run,
            continue_on_error=continue_on_error,
            keep_container=keep_container,
            qemu=qemu,
        )

        # Lazy import: workflow modules are only needed for an actual build
        from .run import run as _run

        returncode = _run(config)
    except YoctoboxError as e:
        logger.critical("%s", e)
        sys.exit(1)

    if returncode != 0:
        logger.error("Build finished with errors")
        sys.exit(1)

    logger.info("Build finished successfully")


def main() -> None:
    """Console script entry point."""
    cli(prog_name="yoctobox")


if __name__ == "__main__":  # pragma: no cover
    main()
