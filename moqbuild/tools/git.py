"""Git tool adapter for moqbuild."""

import logging
from pathlib import Path
from typing import Optional

from moqbuild.errors import CommandError
from moqbuild.schemas import UNKNOWN_COMMIT
from moqbuild.tools.base import ToolAdapter

logger = logging.getLogger(__name__)


class GitAdapter(ToolAdapter):
    """
    Adapter for the git version-control tool.

    Mutating operations (clone, fetch, checkout) raise CommandError on
    failure. Inspection operations used for provenance (rev_parse_head,
    is_dirty, remote_url) never raise; they fall back to sentinel values.
    """

    tool_name = "git"

    def __init__(self, binary: str = "git", runner=None):
        super().__init__(binary, runner)

    def clone(self, repository: str, dest: Path) -> None:
        """Clone repository into dest."""
        self.execute("clone", repository, str(dest))

    def fetch(self, repo_dir: Path, remote: str = "origin") -> None:
        """Fetch updates from remote without touching the working tree."""
        self.execute("-C", str(repo_dir), "fetch", remote)

    def checkout(self, repo_dir: Path, ref: str) -> None:
        """Check out a branch, tag or commit."""
        self.execute("-C", str(repo_dir), "checkout", ref)

    def pull(self, repo_dir: Path, ref: str, remote: str = "origin") -> bool:
        """
        Pull upstream changes for ref.

        Best effort: tags and commit hashes have no upstream to pull from.

        Returns:
            True if the pull succeeded, False otherwise
        """
        try:
            result = self.execute("-C", str(repo_dir), "pull", remote, ref, check=False, capture=True)
        except CommandError as e:
            logger.debug("git pull skipped: %s", e)
            return False
        if result.returncode != 0:
            logger.debug("git pull %s %s failed (exit %d), continuing", remote, ref, result.returncode)
            return False
        return True

    def remote_url(self, repo_dir: Path, remote: str = "origin") -> Optional[str]:
        """Return the URL of remote, or None if it cannot be read."""
        result = self._inspect(repo_dir, "remote", "get-url", remote)
        if result is None:
            return None
        return result.stdout.strip() or None

    def rev_parse_head(self, repo_dir: Path) -> str:
        """Return the HEAD commit hash, or "unknown" if it cannot be resolved."""
        result = self._inspect(repo_dir, "rev-parse", "HEAD")
        if result is None:
            return UNKNOWN_COMMIT
        return result.stdout.strip() or UNKNOWN_COMMIT

    def is_dirty(self, repo_dir: Path) -> bool:
        """
        Check for uncommitted changes relative to HEAD.

        Both unstaged and staged changes count. Exit status 1 from
        `git diff --quiet` means differences; any other failure (not a
        repository, no HEAD yet) is reported as clean.
        """
        for extra in ([], ["--cached"]):
            try:
                result = self.execute(
                    "-C", str(repo_dir), "diff", *extra, "--quiet", "HEAD",
                    check=False, capture=True,
                )
            except CommandError:
                return False
            if result.returncode == 1:
                return True
            if result.returncode != 0:
                return False
        return False

    def _inspect(self, repo_dir: Path, *args: str):
        """Run a read-only command; None on any failure."""
        try:
            result = self.execute("-C", str(repo_dir), *args, check=False, capture=True)
        except CommandError:
            return None
        if result.returncode != 0:
            return None
        return result
