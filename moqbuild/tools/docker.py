"""Docker tool adapter for moqbuild."""

import subprocess
from pathlib import Path
from typing import Dict, Optional

from moqbuild.tools.base import ToolAdapter


class DockerAdapter(ToolAdapter):
    """
    Adapter for the container build tool.

    Uses `docker build -f <dockerfile> <context>` so that Dockerfiles stay in
    the orchestrator's repository while the source tree is the build context.
    """

    tool_name = "docker"

    def __init__(self, binary: str = "docker", runner=None):
        super().__init__(binary, runner)

    def build_command(
        self,
        build_file: Path,
        context: Path,
        image_ref: str,
        secrets: Optional[Dict[str, Path]] = None,
    ) -> list:
        """
        Assemble the build arguments (without the binary).

        Secrets are passed with --secret so they are mounted only during the
        RUN steps that request them and never land in an image layer.
        """
        args = ["build", "-f", str(build_file)]
        for secret_id, src in (secrets or {}).items():
            args += ["--secret", f"id={secret_id},src={src}"]
        args += ["-t", image_ref, str(context)]
        return args

    def build(
        self,
        build_file: Path,
        context: Path,
        image_ref: str,
        secrets: Optional[Dict[str, Path]] = None,
    ) -> subprocess.CompletedProcess:
        """
        Run one container build.

        Returns:
            subprocess.CompletedProcess; the caller decides how to treat failure
        """
        args = self.build_command(build_file, context, image_ref, secrets)
        return self.execute(*args, check=False)
