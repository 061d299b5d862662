"""Build configuration dataclass for yoctobox.

Bundles CLI arguments into a single configuration object that is passed to
every stage of a build instead of sharing module-level state.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .config import ProjectConfig
from .constants import CONTAINER_SHELL
from .errors import ConfigError
from .paths import default_downloads_dir, host_output_dir


@dataclass(frozen=True)
class BuildConfig:
    """Configuration for a single yoctobox invocation.

    Immutable dataclass bundling all CLI arguments for the build.
    Use frozen=True for hashability and to prevent accidental mutation.
    """

    project: str
    target: str
    machine: str

    # Host paths
    src_dir: Path
    support_dir: Path
    downloads_dir: Path
    output_dir: Path

    # bitbake options
    dry_run: bool = False
    continue_on_error: bool = False

    # Container options
    interactive: bool = False
    keep_container: bool = False

    @classmethod
    def from_cli(
        cls,
        *,
        project: str,
        project_config: ProjectConfig,
        src_dir: Path,
        support_dir: Path,
        target: str | None = None,
        downloads: str | None = None,
        bitbake_shell: bool = False,
        dry_run: bool = False,
        continue_on_error: bool = False,
        keep_container: bool = False,
        qemu: bool = False,
    ) -> BuildConfig:
        """Create BuildConfig from CLI arguments.

        Handles argument transformation (e.g., --qemu -> machine).

        Raises:
            ConfigError: If the downloads location or target is invalid.
        """
        if target is not None and not target.strip():
            raise ConfigError("Build target cannot be empty")

        return cls(
            project=project,
            target=target or project,
            machine=project_config.qemu_machine if qemu else project_config.default_machine,
            src_dir=src_dir,
            support_dir=support_dir,
            downloads_dir=resolve_downloads_dir(downloads, project),
            output_dir=host_output_dir(src_dir, project),
            dry_run=dry_run,
            continue_on_error=continue_on_error,
            interactive=bitbake_shell,
            keep_container=keep_container,
        )

    def build_command(self) -> list[str]:
        """Command run inside the initialised build environment."""
        if self.interactive:
            return [CONTAINER_SHELL]

        cmd = ["bitbake"]
        if self.dry_run:
            cmd.append("-n")
        if self.continue_on_error:
            cmd.append("-k")
        cmd.append(self.target)
        return cmd


def resolve_downloads_dir(downloads: str | None, project: str) -> Path:
    """Validate and resolve the shared downloads location.

    The location may not exist yet (it is created later), but it must not be
    an existing non-directory.

    Raises:
        ConfigError: If the location is empty or exists as a non-directory.
    """
    if downloads is None:
        return default_downloads_dir(project)

    if not downloads.strip():
        raise ConfigError(f'Invalid downloads location "{downloads}"')

    resolved = Path(downloads).expanduser().resolve()
    if resolved.exists() and not resolved.is_dir():
        raise ConfigError(f'Invalid downloads location "{downloads}"')
    return resolved
