"""Target schema - one buildable image of an implementation."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

IMAGE_TAG = "latest"


@dataclass(frozen=True)
class Target:
    """
    One buildable artifact.

    Attributes:
        name: Target name within the implementation (e.g. "relay", "client")
        build_file: Path to the Dockerfile
        image: Image name without tag
        entrypoint: Optional script staged into the build context
    """
    name: str
    build_file: Path
    image: str
    entrypoint: Optional[Path] = None

    @property
    def image_ref(self) -> str:
        """Image name with tag, as passed to docker build -t."""
        return f"{self.image}:{IMAGE_TAG}"

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any], base_dir: Path) -> "Target":
        """
        Build a Target from a build.yaml targets entry.

        Relative paths are resolved against base_dir (the implementation dir).
        """
        if not isinstance(data, dict):
            raise ValueError(f"target '{name}' must be a mapping")
        missing = [key for key in ("dockerfile", "image") if not data.get(key)]
        if missing:
            raise ValueError(f"target '{name}' is missing: {', '.join(missing)}")

        entrypoint = data.get("entrypoint")
        return cls(
            name=name,
            build_file=base_dir / data["dockerfile"],
            image=data["image"],
            entrypoint=base_dir / entrypoint if entrypoint else None,
        )


@dataclass(frozen=True)
class ImageRecord:
    """A successfully built image, in the order it was built."""
    target: str
    image: str

    def to_dict(self) -> dict[str, Any]:
        return {"target": self.target, "image": self.image}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ImageRecord":
        return cls(target=data["target"], image=data["image"])
