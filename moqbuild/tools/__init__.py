"""Tool adapters for orchestrating external tools in moqbuild."""

from moqbuild.tools.base import ToolAdapter
from moqbuild.tools.docker import DockerAdapter
from moqbuild.tools.git import GitAdapter

__all__ = ["ToolAdapter", "DockerAdapter", "GitAdapter"]
