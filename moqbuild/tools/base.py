"""Base class for tool adapters."""

import logging
import shutil
import subprocess
from typing import Any, Callable, Dict, Optional

from moqbuild.errors import CommandError

logger = logging.getLogger(__name__)


class ToolAdapter:
    """
    Base class for tool adapters.

    Tool adapters give moqbuild a standardized interface to the external
    commands it treats as opaque (git, docker). Every invocation is
    blocking; a non-zero exit status is a hard failure unless the caller
    explicitly asks for check=False.
    """

    #: Human-readable tool name used in messages
    tool_name = "tool"

    def __init__(self, binary: str, runner: Optional[Callable[..., subprocess.CompletedProcess]] = None):
        """
        Initialize the tool adapter.

        Args:
            binary: Executable name or path
            runner: Callable with subprocess.run's signature (injected by tests)
        """
        self.binary = binary
        self._runner = runner or subprocess.run

    def execute(self, *args: str, check: bool = True, capture: bool = False) -> subprocess.CompletedProcess:
        """
        Execute a tool command.

        Args:
            *args: Command arguments (e.g. 'clone', URL, path)
            check: Raise CommandError on non-zero exit
            capture: Capture stdout/stderr as text instead of inheriting them

        Returns:
            subprocess.CompletedProcess result

        Raises:
            CommandError: If check is set and the command fails, or the binary is missing
        """
        cmd = [self.binary] + [str(a) for a in args]
        logger.debug("Running: %s", " ".join(cmd))

        kwargs: Dict[str, Any] = {"check": False}
        if capture:
            kwargs["capture_output"] = True
            kwargs["text"] = True

        try:
            result = self._runner(cmd, **kwargs)
        except FileNotFoundError:
            raise CommandError(cmd, 127, f"{self.tool_name} executable not found: {self.binary}")

        if check and result.returncode != 0:
            raise CommandError(cmd, result.returncode)

        return result

    def version(self) -> Optional[str]:
        """
        Return the output of `<binary> --version`, or None if it cannot be determined.

        Never raises.
        """
        try:
            result = self.execute("--version", check=False, capture=True)
        except CommandError:
            return None
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def validate(self) -> Dict[str, Any]:
        """
        Validate that the tool is available.

        Returns:
            Dictionary with keys:
                - 'valid': bool indicating if validation passed
                - 'errors': list of error messages (empty if valid)
                - 'version': version string reported by the tool (None if unavailable)
        """
        errors = []
        version = None
        if shutil.which(self.binary) is None:
            errors.append(f"{self.tool_name} executable not found: {self.binary}")
        else:
            version = self.version()
            if version is None:
                errors.append(f"{self.tool_name} did not report a version: {self.binary}")
        return {"valid": not errors, "errors": errors, "version": version}
