import subprocess
from datetime import datetime, timezone
from pathlib import Path

import pytest
import yaml

from moqbuild.config import RunnerConfig
from moqbuild.pipeline import BuildPipeline
from moqbuild.provenance import ProvenanceRecorder
from moqbuild.tools.docker import DockerAdapter
from moqbuild.tools.git import GitAdapter

RUNNER_COMMIT = "r" * 40
SOURCE_COMMIT = "a" * 40
FIXED_NOW = datetime(2026, 1, 31, 12, 0, 0, tzinfo=timezone.utc)


class FakeRunner:
    """
    Stand-in for subprocess.run that records every command.

    Simulates just enough git state (clones, origins, commits, dirty trees)
    for acquisition and provenance to be exercised without real tools.
    """

    def __init__(self):
        self.calls = []
        self.origins = {}
        self.commits = {}
        self.dirty = set()
        self.failures = {}
        self.on_build = None

    def __call__(self, cmd, **kwargs):
        cmd = list(cmd)
        self.calls.append(cmd)
        args = cmd[1:]
        cwd = None
        if args[:1] == ["-C"]:
            cwd, args = args[1], args[2:]

        sub = args[0]
        if sub in self.failures:
            return self._result(cmd, self.failures[sub])

        if sub == "--version":
            return self._result(cmd, 0, f"{Path(cmd[0]).name} version 1.0")
        if sub == "clone":
            url, dest = args[1], args[2]
            Path(dest, ".git").mkdir(parents=True)
            self.origins[dest] = url
            self.commits.setdefault(dest, SOURCE_COMMIT)
            return self._result(cmd, 0)
        if sub == "remote":
            url = self.origins.get(cwd)
            return self._result(cmd, 0, url + "\n") if url else self._result(cmd, 2)
        if sub == "rev-parse":
            commit = self.commits.get(cwd)
            return self._result(cmd, 0, commit + "\n") if commit else self._result(cmd, 128)
        if sub == "diff":
            if cwd not in self.commits:
                return self._result(cmd, 129)
            return self._result(cmd, 1 if cwd in self.dirty else 0)
        if sub == "build":
            if self.on_build is not None:
                return self._result(cmd, self.on_build(cmd))
            return self._result(cmd, 0)
        return self._result(cmd, 0)

    def calls_for(self, sub):
        """Commands whose subcommand (after any -C <dir>) is sub."""
        matched = []
        for cmd in self.calls:
            args = cmd[1:]
            if args[:1] == ["-C"]:
                args = args[2:]
            if args and args[0] == sub:
                matched.append(cmd)
        return matched

    @staticmethod
    def _result(cmd, returncode, stdout=""):
        return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr="")


def make_implementation(builds_dir, name, targets=("relay", "client"), source="git",
                        repository=None, **extra):
    """Create builds/<name>/ with build.yaml, Dockerfiles and entrypoints."""
    impl_dir = Path(builds_dir) / name
    impl_dir.mkdir(parents=True, exist_ok=True)

    target_defs = {}
    for target in targets:
        (impl_dir / f"Dockerfile.{target}").write_text("FROM scratch\n")
        entrypoint = impl_dir / f"entrypoint-{target}.sh"
        entrypoint.write_text(f"#!/bin/bash\necho {target}\n")
        target_defs[target] = {
            "dockerfile": f"Dockerfile.{target}",
            "image": f"{name}-{target}",
            "entrypoint": entrypoint.name,
        }

    data = {
        "implementation": name,
        "source": source,
        "repository": repository or f"https://github.com/example/{name}",
        "default_ref": "main",
        "targets": target_defs,
    }
    data.update(extra)
    (impl_dir / "build.yaml").write_text(yaml.safe_dump(data, sort_keys=False))
    return impl_dir


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def runner_root(tmp_path, fake_runner):
    root = tmp_path / "runner"
    (root / "builds").mkdir(parents=True)
    fake_runner.commits[str(root)] = RUNNER_COMMIT
    return root


@pytest.fixture
def builds_dir(runner_root):
    return runner_root / "builds"


@pytest.fixture
def runner_config(runner_root):
    return RunnerConfig({"runner_root": str(runner_root)})


@pytest.fixture
def git(fake_runner):
    return GitAdapter(runner=fake_runner)


@pytest.fixture
def docker(fake_runner):
    return DockerAdapter(runner=fake_runner)


@pytest.fixture
def recorder(runner_root, git):
    return ProvenanceRecorder(runner_root, git, clock=lambda: FIXED_NOW)


@pytest.fixture
def pipeline(runner_config, git, docker, recorder):
    return BuildPipeline(runner_config, git=git, docker=docker, recorder=recorder)


@pytest.fixture
def make_impl(builds_dir):
    """Factory creating implementations under the runner's builds/ dir."""
    def _make(name, **kwargs):
        return make_implementation(builds_dir, name, **kwargs)
    return _make
