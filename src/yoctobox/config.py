"""Project configuration management for yoctobox."""

from __future__ import annotations

import json
import re
import string
from dataclasses import asdict, dataclass, fields
from pathlib import Path

from .constants import DEFAULT_MACHINE, PROJECT_CONFIG_FILE, QEMU_MACHINE
from .logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProjectConfig:
    """yoctobox project settings.

    Stored as ``yoctobox.json`` in the support directory. Every key is
    optional; an empty project name means "derive it from the source tree".
    """

    project: str = ""
    default_machine: str = DEFAULT_MACHINE
    qemu_machine: str = QEMU_MACHINE


_NAME_CHARS = frozenset(string.ascii_lowercase + string.digits + "-_.")


def sanitize_project_name(name: str) -> str:
    """Turn a directory name into a valid Docker repository name.

    Docker repository names must be lowercase and may only contain ASCII
    letters, digits and single separators ``.``, ``_`` or ``-`` between them.
    """
    safe_name = "".join(c if c in _NAME_CHARS else "-" for c in name.lower())
    safe_name = re.sub(r"[-_.]{2,}", "-", safe_name)
    safe_name = safe_name.strip("-_.")
    return safe_name or "yocto"


def get_project_config_path(support_dir: Path) -> Path:
    """Get the path to the project config file."""
    return support_dir / PROJECT_CONFIG_FILE


def load_project_config(support_dir: Path) -> ProjectConfig:
    """Load project configuration from the support dir, or return defaults."""
    config_path = get_project_config_path(support_dir)

    if config_path.exists():
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
            known = {f.name for f in fields(ProjectConfig)}
            unknown = sorted(set(data) - known)
            if unknown:
                logger.warning("Ignoring unknown keys in %s: %s", config_path, ", ".join(unknown))
            values = {k: v for k, v in data.items() if k in known}
            for key, value in values.items():
                if not isinstance(value, str):
                    raise TypeError(f"{key} must be a string, got {type(value).__name__}")
            return ProjectConfig(**values)
        except (OSError, json.JSONDecodeError, TypeError, ValueError, AttributeError) as e:
            logger.warning("Failed to load %s (%s), using defaults", config_path, e)

    return ProjectConfig()


def save_project_config(support_dir: Path, config: ProjectConfig) -> None:
    """Save project configuration to the support dir."""
    support_dir.mkdir(parents=True, exist_ok=True)
    get_project_config_path(support_dir).write_text(
        json.dumps(asdict(config), indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )


def resolve_project_name(config: ProjectConfig, source_dir: Path) -> str:
    """Get the project name used for image tags, containers and host files."""
    if config.project:
        return sanitize_project_name(config.project)
    return sanitize_project_name(source_dir.resolve().name)
