"""
Build executor for moqbuild.

Runs exactly one container build per requested target, in a fixed order.
The first failure aborts the run; partial success is not recorded.
"""

import logging
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from moqbuild.config import ImplementationConfig
from moqbuild.errors import BuildError, CommandError, ConfigurationError, UnknownTargetError
from moqbuild.schemas import ImageRecord, Target
from moqbuild.tools.docker import DockerAdapter

logger = logging.getLogger(__name__)

CA_CERT_SECRET_ID = "ca_cert"


@contextmanager
def staged_file(src: Path, context_dir: Path) -> Iterator[Path]:
    """
    Copy src into context_dir for the duration of the block.

    The copy is always removed on exit, success or failure. If a file
    already existed at the destination, its contents and mode are restored
    instead.
    """
    dest = context_dir / src.name
    if dest.exists() and dest.resolve() == src.resolve():
        # Embedded sources build from the definition directory itself.
        yield dest
        return

    if dest.exists() and not dest.is_file():
        raise ConfigurationError(f"Cannot stage {src.name}: {dest} exists and is not a regular file")

    original: Optional[bytes] = None
    original_mode: Optional[int] = None
    if dest.is_file():
        original = dest.read_bytes()
        original_mode = dest.stat().st_mode

    try:
        shutil.copy2(src, dest)
        yield dest
    finally:
        if original is None:
            dest.unlink(missing_ok=True)
        else:
            dest.write_bytes(original)
            dest.chmod(original_mode)


class BuildExecutor:
    """Builds the images of one implementation."""

    def __init__(self, implementation: ImplementationConfig, docker: DockerAdapter):
        self.implementation = implementation
        self.docker = docker

    def select_targets(self, name: Optional[str] = None) -> List[Target]:
        """
        Resolve the targets to build.

        Args:
            name: Single target name, or None/empty for the default target set

        Raises:
            UnknownTargetError: If name is not one of the implementation's targets
        """
        targets = self.implementation.targets
        if not name:
            return [targets[t] for t in self.implementation.default_targets]

        if name not in targets:
            raise UnknownTargetError(name, list(targets), self.implementation.name)
        return [targets[name]]

    def secrets(self) -> Dict[str, Path]:
        """Build secrets to forward; the CA certificate only if the file exists."""
        ca_cert = self.implementation.ca_cert_path
        if ca_cert is not None and ca_cert.is_file():
            logger.info("Found extra CA certificate: %s", ca_cert)
            return {CA_CERT_SECRET_ID: ca_cert}
        return {}

    def build_target(self, target: Target, context_dir: Path,
                     secrets: Optional[Dict[str, Path]] = None) -> ImageRecord:
        """
        Build a single target.

        Raises:
            BuildError: If the build tool fails
        """
        logger.info(
            "Building %s -> %s",
            target.name,
            target.image_ref,
            extra={"event": "build_started", "implementation": self.implementation.name, "target": target.name},
        )
        logger.info("  Dockerfile: %s", target.build_file)
        logger.info("  Context: %s", context_dir)

        with self._staged_entrypoint(target, context_dir):
            try:
                result = self.docker.build(target.build_file, context_dir, target.image_ref, secrets)
            except CommandError as e:
                raise BuildError(target.name, e.command, e.returncode) from e

            if result.returncode != 0:
                raise BuildError(target.name, result.args, result.returncode)

        logger.info(
            "Built %s",
            target.image_ref,
            extra={"event": "build_completed", "implementation": self.implementation.name, "target": target.name},
        )
        return ImageRecord(target=target.name, image=target.image_ref)

    def build_all(self, targets: List[Target], context_dir: Path) -> List[ImageRecord]:
        """
        Build targets in order, stopping at the first failure.

        Returns:
            One ImageRecord per target, in invocation order
        """
        secrets = self.secrets()
        return [self.build_target(target, context_dir, secrets) for target in targets]

    @contextmanager
    def _staged_entrypoint(self, target: Target, context_dir: Path) -> Iterator[Optional[Path]]:
        if target.entrypoint is None:
            yield None
            return
        with staged_file(target.entrypoint, context_dir) as dest:
            yield dest
