"""Default support file generation for yoctobox.

Writes a starting point for the image inputs (Dockerfile, package manifest,
base image reference) into a project's support directory.
"""

from __future__ import annotations

from pathlib import Path

from .logging import get_logger
from .paths import SupportFiles

logger = get_logger(__name__)

DEFAULT_BASE_IMAGE = "ubuntu:18.04"

# Host packages required by the Yocto Project on Ubuntu
DEFAULT_PACKAGES = (
    "build-essential",
    "chrpath",
    "cpio",
    "debianutils",
    "diffstat",
    "gawk",
    "gcc-multilib",
    "git-core",
    "iputils-ping",
    "libegl1-mesa",
    "libsdl1.2-dev",
    "locales",
    "python3",
    "python3-git",
    "python3-jinja2",
    "python3-pexpect",
    "python3-pip",
    "socat",
    "sudo",
    "texinfo",
    "tzdata",
    "unzip",
    "wget",
    "xz-utils",
)


def generate_dockerfile() -> str:
    """Generate the default build environment Dockerfile.

    Build arguments supplied by yoctobox:
        BASELINE        base image reference (container.base)
        EXTRA_PACKAGES  space separated package manifest (packages.list)
        TZ_DATA         debconf selections for tzdata
    """
    return """\
# Ubuntu based Yocto build environment
ARG BASELINE
FROM ${BASELINE}

ARG TZ_DATA
RUN /bin/bash -c "debconf-set-selections <<<\\"${TZ_DATA}\\""
RUN /usr/bin/apt-get update && /usr/bin/apt-get upgrade -y

ARG EXTRA_PACKAGES
ARG DEBIAN_FRONTEND=noninteractive
ARG DEBCONF_NONINTERACTIVE_SEEN=true
RUN /usr/bin/apt-get install -y ${EXTRA_PACKAGES}

RUN /usr/sbin/locale-gen en_US.UTF-8
ENV LANG=en_US.UTF-8
"""


def generate_packages_list() -> str:
    return "\n".join(DEFAULT_PACKAGES) + "\n"


def generate_container_base() -> str:
    return f"{DEFAULT_BASE_IMAGE}\n"


def write_support_files(files: SupportFiles) -> list[Path]:
    """Write default support files, keeping any that already exist.

    Returns:
        Paths of the files that were written.
    """
    files.docker_dir.mkdir(parents=True, exist_ok=True)

    written: list[Path] = []
    for path, content in [
        (files.dockerfile, generate_dockerfile()),
        (files.packages_list, generate_packages_list()),
        (files.container_base, generate_container_base()),
    ]:
        if path.exists():
            logger.info("Keeping existing %s", path)
            continue
        # Unix line endings regardless of host
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
        logger.info("Wrote %s", path)
        written.append(path)

    return written
