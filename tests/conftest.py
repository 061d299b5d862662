"""Pytest configuration and fixtures for yoctobox tests.

This module ensures the yoctobox package is importable during tests
without requiring installation, and provides an in-memory Docker engine.
"""

from __future__ import annotations

import re
import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path

import pytest

# Add src directory to path for development testing
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from yoctobox import docker as docker_module  # noqa: E402
from yoctobox.paths import SupportFiles  # noqa: E402


def _option(cmd: list[str], name: str) -> str:
    return cmd[cmd.index(name) + 1]


@dataclass
class FakeDockerEngine:
    """Minimal in-memory stand-in for the docker CLI."""

    images: dict[str, str] = field(default_factory=dict)  # id -> reference
    containers: dict[str, dict[str, object]] = field(default_factory=dict)
    commands: list[list[str]] = field(default_factory=list)
    build_returncode: int = 0
    exec_returncode: int = 0
    build_output: list[str] = field(default_factory=lambda: ["Step 1/8 : ARG BASELINE"])
    failing: set[str] = field(default_factory=set)  # "docker <obj> <verb>" to fail
    _counter: int = 0

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}{self._counter:04d}"

    def _result(self, cmd: list[str], rc: int = 0, stdout: str = "") -> subprocess.CompletedProcess[str]:
        return subprocess.CompletedProcess(cmd, rc, stdout, "")

    def run(self, cmd, *, timeout=None, capture_output=True, check=False):
        cmd = list(cmd)
        self.commands.append(cmd)
        verb = " ".join(cmd[:3])
        if verb in self.failing:
            return self._result(cmd, 1)

        if cmd[:2] == ["docker", "info"]:
            return self._result(cmd)
        if verb == "docker image ls":
            ref = _option(cmd, "--filter").split("=", 1)[1]
            ids = [
                image_id
                for image_id, image_ref in self.images.items()
                if image_ref == ref or image_ref.split(":", 1)[0] == ref
            ]
            return self._result(cmd, stdout="".join(f"{i}\n" for i in ids))
        if verb == "docker image rm":
            self.images.pop(cmd[-1], None)
            return self._result(cmd)
        if verb == "docker container ls":
            pattern = _option(cmd, "--filter").split("=", 1)[1]
            ids = [
                cid
                for cid, info in self.containers.items()
                if re.search(pattern, "/" + str(info["name"]))
            ]
            return self._result(cmd, stdout="".join(f"{i}\n" for i in ids))
        if verb == "docker container create":
            cid = self._next_id("c")
            self.containers[cid] = {"name": _option(cmd, "--name"), "running": False}
            Path(_option(cmd, "--cidfile")).write_text(cid)
            return self._result(cmd, stdout=cid)
        if verb == "docker container start":
            self.containers[cmd[-1]]["running"] = True
            return self._result(cmd)
        if verb == "docker container stop":
            if cmd[-1] in self.containers:
                self.containers[cmd[-1]]["running"] = False
            return self._result(cmd)
        if verb == "docker container rm":
            self.containers.pop(cmd[-1], None)
            return self._result(cmd)
        if verb == "docker container exec":
            # Only the build command (bash -c) reports exec_returncode;
            # provisioning failures are set up through `failing`
            rc = self.exec_returncode if "-c" in cmd else 0
            return self._result(cmd, rc)
        raise AssertionError(f"Unexpected docker command: {cmd}")

    def stream(self, cmd, on_line) -> int:
        cmd = list(cmd)
        self.commands.append(cmd)
        verb = " ".join(cmd[:3])
        if verb == "docker image build":
            for line in self.build_output:
                on_line(line)
            if self.build_returncode != 0:
                return self.build_returncode
            image_id = self._next_id("sha256:i")
            self.images[image_id] = _option(cmd, "--tag")
            Path(_option(cmd, "--iidfile")).write_text(image_id)
            return 0
        if verb == "docker container exec":
            on_line("NOTE: Tasks Summary: all succeeded")
            return self.exec_returncode
        raise AssertionError(f"Unexpected streamed docker command: {cmd}")

    def verbs(self) -> list[str]:
        return [" ".join(c[:3]) for c in self.commands]


@pytest.fixture
def fake_docker(monkeypatch: pytest.MonkeyPatch) -> FakeDockerEngine:
    """Route every docker call of yoctobox through a FakeDockerEngine."""
    engine = FakeDockerEngine()
    monkeypatch.setattr(docker_module, "safe_docker_run", engine.run)
    monkeypatch.setattr(docker_module, "run_docker_streaming", engine.stream)
    return engine


@pytest.fixture
def support_files(tmp_path: Path) -> SupportFiles:
    """A source tree with a populated scripts/ support directory."""
    src = tmp_path / "src"
    files = SupportFiles.for_source(src, "demo")
    files.docker_dir.mkdir(parents=True)
    files.dockerfile.write_text("ARG BASELINE\nFROM ${BASELINE}\n")
    files.packages_list.write_text("gawk\nwget\ngit-core\n")
    files.container_base.write_text("ubuntu:18.04\n")
    return files
