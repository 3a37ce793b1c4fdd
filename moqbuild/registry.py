"""
ImplementationRegistry - Load and validate implementation build definitions.

The registry provides:
- Discovery of implementations under the builds directory
- Loading build.yaml definitions into ImplementationConfig
- Caching loaded definitions
- Validation of definition structure

Example directory structure:
    builds/
        moq-rs/
            build.yaml
            Dockerfile.relay
            entrypoint-relay.sh
        moq-dev-js/
            build.yaml
            Dockerfile.client
"""

from pathlib import Path
from typing import Optional

from moqbuild.config import BUILD_FILENAME, ImplementationConfig
from moqbuild.errors import ConfigurationError, ImplementationNotFoundError


class ImplementationRegistry:
    """Registry for loading and caching implementation build definitions."""

    def __init__(self, builds_dir: Path | str):
        """
        Initialize the registry.

        Args:
            builds_dir: Directory containing one subdirectory per implementation
        """
        self._builds_dir = Path(builds_dir)
        self._cache: dict[str, ImplementationConfig] = {}

    @property
    def builds_dir(self) -> Path:
        """Get the builds directory path."""
        return self._builds_dir

    def load(self, name: str) -> ImplementationConfig:
        """
        Load an implementation by name.

        Args:
            name: Implementation name (its directory under builds/)

        Returns:
            The validated ImplementationConfig

        Raises:
            ImplementationNotFoundError: If no build definition exists
            ConfigurationError: If the build definition is invalid
        """
        if name in self._cache:
            return self._cache[name]

        def_path = self._find_definition(name)
        if def_path is None:
            raise ImplementationNotFoundError(
                f"Unknown implementation: {name} (no {BUILD_FILENAME} in {self._builds_dir / name})"
            )

        implementation = ImplementationConfig.from_file(def_path)

        if implementation.name != name:
            raise ConfigurationError(
                f"Implementation name mismatch: directory is '{name}' "
                f"but {BUILD_FILENAME} declares '{implementation.name}'"
            )

        implementation.validate()

        self._cache[name] = implementation
        return implementation

    def list_implementations(self) -> list[str]:
        """
        List all available implementation names.

        Returns:
            Sorted list of directories under builds/ containing a build definition
        """
        if not self._builds_dir.exists():
            return []

        return sorted(
            d.name for d in self._builds_dir.iterdir()
            if d.is_dir() and self._find_definition(d.name) is not None
        )

    def _find_definition(self, name: str) -> Optional[Path]:
        """Find the build definition file for an implementation, if any."""
        for filename in (BUILD_FILENAME, "build.yml"):
            path = self._builds_dir / name / filename
            if path.is_file():
                return path
        return None

    def clear_cache(self) -> None:
        """Clear the definition cache."""
        self._cache.clear()
