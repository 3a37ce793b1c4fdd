"""
moqbuild - Build orchestrator for MoQ implementation images

Resolves implementation source trees, builds container images per target,
and records build provenance in .last-build.json.
"""

__version__ = "0.1.0"
__author__ = "MoQ Interop Team"


__all__ = ["RunnerConfig", "ImplementationConfig", "load_config"]

from .config import ImplementationConfig, RunnerConfig, load_config
