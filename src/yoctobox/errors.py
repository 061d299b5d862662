"""Unified exception hierarchy for yoctobox.

Every fatal condition is raised as a YoctoboxError subclass. The CLI catches
these, logs them at FATAL level and exits with status 1. Recoverable problems
are never raised; they are logged as warnings where they happen.

Dependency direction:
    This module has NO internal dependencies (leaf module).
    It may be imported by: all other yoctobox modules.
"""

from __future__ import annotations


class YoctoboxError(Exception):
    """Base exception for all yoctobox errors."""


class ConfigError(YoctoboxError):
    """Invalid command-line or project configuration.

    Examples:
        - Downloads location that exists but is not a directory
        - Empty build target
    """


class PrerequisiteError(YoctoboxError):
    """Host environment is not fit for a build.

    Examples:
        - Running as root
        - docker or git missing from PATH
        - Support files (Dockerfile, packages.list, container.base) missing
    """


class DockerError(YoctoboxError):
    """Docker operation errors.

    Base class for all Docker-related exceptions.
    """


class DockerNotFoundError(DockerError):
    """Raised when Docker is not installed or not in PATH."""


class DockerTimeoutError(DockerError):
    """Raised when a Docker operation times out."""


class ImageBuildError(DockerError):
    """Raised when the build environment image cannot be built."""


class ContainerError(DockerError):
    """Raised when a container lifecycle step fails."""
