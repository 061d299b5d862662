"""Constants module for yoctobox.

All timeout values and shared constants are defined here (SSOT).
"""

from __future__ import annotations

# === Docker Timeouts (seconds) ===
DOCKER_COMMAND_TIMEOUT = 30  # Quick docker commands (ls, stop, rm, create)
DOCKER_EXEC_TIMEOUT = 120  # Provisioning commands run inside the container

# === Machines ===
DEFAULT_MACHINE = "raspberrypi4-64"
QEMU_MACHINE = "qemuarm64"

# === Host layout ===
SUPPORT_DIR_NAME = "scripts"  # Relative to the source tree
PROJECT_CONFIG_FILE = "yoctobox.json"
CONTAINER_BASE_FILE = "container.base"
PACKAGES_FILE = "packages.list"
DOCKER_DIR_NAME = "docker"

# === Container layout ===
CONTAINER_USER = "builder"
CONTAINER_HOME = "/home/builder"
CONTAINER_SRC_DIR = "/home/builder/src"
CONTAINER_SHELL = "/bin/bash"

# === Image hashing ===
# Bump when the way images are built or provisioned changes, so that
# previously built images are not reused.
IMAGE_RECIPE_VERSION = "1"

# Fallback when /etc/timezone is unavailable
DEFAULT_TZ_AREA = "Europe"
DEFAULT_TZ_ZONE = "Bucharest"
