"""
Configuration management for moqbuild.

Two layers:
- RunnerConfig: orchestrator-wide settings from moqbuild.yaml (optional)
- ImplementationConfig: one implementation's builds/<name>/build.yaml
"""

import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from moqbuild.errors import ConfigurationError
from moqbuild.schemas import SourceType, Target

CONFIG_FILENAME = "moqbuild.yaml"
CONFIG_ENV_VAR = "MOQBUILD_CONFIG"
BUILD_FILENAME = "build.yaml"
PROVENANCE_FILENAME = ".last-build.json"
SOURCES_DIRNAME = ".sources"
DEFAULT_CA_CERT = "extra-ca.pem"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("pretty", "structured")


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML mapping, raising ConfigurationError on any problem."""
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML syntax in {path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: top level must be a mapping")
    return data


def _resolve(base_dir: Path, value: Any) -> Path:
    """Resolve a possibly relative, possibly ~-prefixed path against base_dir."""
    path = Path(str(value)).expanduser()
    if not path.is_absolute():
        path = base_dir / path
    return path


class ImplementationConfig:
    """Build definition for a single implementation."""

    def __init__(self, name: str, data: Dict[str, Any], build_dir: Path):
        self.name = name
        self.build_dir = Path(build_dir)

        source = data.get("source", SourceType.GIT.value)
        try:
            self.source_type = SourceType(source)
        except ValueError:
            raise ConfigurationError(f"{name}: unknown source type '{source}'")
        if self.source_type is SourceType.LOCAL:
            raise ConfigurationError(
                f"{name}: 'local' is selected with --local, not configured"
            )

        self.repository = data.get("repository", "")
        self.default_ref = str(data.get("default_ref", "main"))
        self.allow_repo_override = bool(data.get("allow_repo_override", True))
        self.ca_cert = data.get("ca_cert", DEFAULT_CA_CERT)

        targets_data = data.get("targets") or {}
        if not isinstance(targets_data, dict):
            raise ConfigurationError(f"{name}: 'targets' must be a mapping")

        self.targets: Dict[str, Target] = {}
        for target_name, target_data in targets_data.items():
            try:
                self.targets[target_name] = Target.from_dict(
                    target_name, target_data, self.build_dir
                )
            except ValueError as e:
                raise ConfigurationError(f"{name}: {e}")

        self.default_targets: List[str] = list(
            data.get("default_targets") or self.targets.keys()
        )

    @classmethod
    def from_file(cls, path: Path) -> "ImplementationConfig":
        """Load from a build.yaml; the implementation dir is its parent."""
        path = Path(path)
        data = _load_yaml(path)
        name = data.get("implementation") or path.parent.name
        return cls(name, data, path.parent.resolve())

    @property
    def target_names(self) -> List[str]:
        """Known target names in definition order."""
        return list(self.targets.keys())

    @property
    def provenance_path(self) -> Path:
        """Where the last build's provenance record lives."""
        return self.build_dir / PROVENANCE_FILENAME

    @property
    def ca_cert_path(self) -> Optional[Path]:
        """Extra CA certificate path, if one is configured (it may not exist)."""
        if not self.ca_cert:
            return None
        return _resolve(self.build_dir, self.ca_cert)

    def validate(self) -> None:
        """Validate the build definition."""
        if not self.targets:
            raise ConfigurationError(f"{self.name}: no targets defined")

        if self.source_type is SourceType.GIT and not self.repository:
            raise ConfigurationError(f"{self.name}: 'repository' is required for git sources")

        unknown = [t for t in self.default_targets if t not in self.targets]
        if unknown:
            raise ConfigurationError(
                f"{self.name}: default_targets reference unknown targets: {', '.join(unknown)}"
            )

        for target in self.targets.values():
            if not target.build_file.is_file():
                raise ConfigurationError(
                    f"{self.name}: Dockerfile for '{target.name}' not found: {target.build_file}"
                )
            if target.entrypoint is not None and not target.entrypoint.is_file():
                raise ConfigurationError(
                    f"{self.name}: entrypoint for '{target.name}' not found: {target.entrypoint}"
                )

    def __repr__(self) -> str:
        return (
            f"ImplementationConfig(name={self.name}, source={self.source_type.value}, "
            f"targets={self.target_names})"
        )


class RunnerConfig:
    """Orchestrator-wide configuration."""

    def __init__(self, data: Optional[Dict[str, Any]] = None, base_dir: Optional[Path] = None,
                 config_path: Optional[Path] = None):
        data = data or {}
        self.config_path = config_path
        base_dir = Path(base_dir) if base_dir else Path.cwd()

        self.runner_root = _resolve(base_dir, data.get("runner_root", "."))
        self.builds_dir = _resolve(self.runner_root, data.get("builds_dir", "builds"))
        workspace = data.get("workspace_dir")
        self.workspace_dir = _resolve(self.runner_root, workspace) if workspace else None

        self.git_bin = data.get("git_bin", "git")
        self.docker_bin = data.get("docker_bin", "docker")
        for key in ("git_bin", "docker_bin"):
            if not isinstance(getattr(self, key), str) or not getattr(self, key):
                raise ConfigurationError(f"'{key}' must be a non-empty string")

        self.logging = data.get("logging") or {}
        if not isinstance(self.logging, dict):
            raise ConfigurationError("'logging' must be a mapping")
        self._validate_logging()

    def _validate_logging(self) -> None:
        level = self.logging.get("level", "INFO")
        if not isinstance(level, str) or level.upper() not in LOG_LEVELS:
            raise ConfigurationError(
                f"logging.level must be one of {', '.join(LOG_LEVELS)}, got {level!r}"
            )

        log_format = self.logging.get("format", "pretty")
        if log_format not in LOG_FORMATS:
            raise ConfigurationError(
                f"logging.format must be one of {', '.join(LOG_FORMATS)}, got {log_format!r}"
            )

        if not isinstance(self.logging.get("console", True), bool):
            raise ConfigurationError("logging.console must be true or false")

        output = self.logging.get("output")
        if output is not None and not isinstance(output, str):
            raise ConfigurationError("logging.output must be a file path")

    def workspace_for(self, implementation: ImplementationConfig) -> Path:
        """Directory holding cached clones for an implementation."""
        if self.workspace_dir is not None:
            return self.workspace_dir
        return implementation.build_dir / SOURCES_DIRNAME

    def get_log_file_path(self) -> Optional[Path]:
        """Get log file path with date interpolation (None = no log file)."""
        output = self.logging.get("output")
        if not output:
            return None
        output = output.replace("{date}", datetime.now().strftime("%Y-%m-%d"))
        return _resolve(self.runner_root, output)

    def get_log_level(self) -> str:
        """Get logging level."""
        return str(self.logging.get("level", "INFO")).upper()

    def get_log_format(self) -> str:
        """Get log format (structured or pretty)."""
        return self.logging.get("format", "pretty")

    def should_log_to_console(self) -> bool:
        """Check if console logging is enabled."""
        return self.logging.get("console", True)

    def __repr__(self) -> str:
        return f"RunnerConfig(runner_root={self.runner_root}, builds_dir={self.builds_dir})"


def load_config(config_path: Optional[Path] = None) -> RunnerConfig:
    """
    Load runner configuration.

    Lookup order: explicit path, $MOQBUILD_CONFIG, ./moqbuild.yaml.
    Without any config file, defaults rooted at the current directory are used.

    Args:
        config_path: Explicit config file path (must exist)

    Returns:
        RunnerConfig instance

    Raises:
        ConfigurationError: If an explicitly requested config is missing or invalid
    """
    if config_path is None and os.environ.get(CONFIG_ENV_VAR):
        config_path = Path(os.environ[CONFIG_ENV_VAR])

    if config_path is None:
        default_path = Path.cwd() / CONFIG_FILENAME
        if not default_path.exists():
            return RunnerConfig()
        config_path = default_path

    config_path = Path(config_path).expanduser().resolve()
    data = _load_yaml(config_path)
    return RunnerConfig(data, base_dir=config_path.parent, config_path=config_path)
