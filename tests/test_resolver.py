"""Tests for source selection resolution."""

from pathlib import Path
from unittest.mock import patch

import pytest

from moqbuild.config import ImplementationConfig
from moqbuild.errors import ConfigurationError
from moqbuild.resolver import resolve_selection
from moqbuild.schemas import SourceSelection, SourceType

REPO = "https://github.com/cloudflare/moq-rs"


def _impl(tmp_path, **overrides):
    data = {
        "repository": REPO,
        "default_ref": "main",
        "targets": {"relay": {"dockerfile": "Dockerfile.relay", "image": "moq-relay-ietf"}},
    }
    data.update(overrides)
    return ImplementationConfig("moq-rs", data, tmp_path)


class TestConflicts:

    def test_ref_and_local(self, tmp_path):
        selection = SourceSelection(ref="v1.0", local_path=Path("/tmp/checkout"))
        with pytest.raises(ConfigurationError, match="Cannot specify both --ref and --local"):
            resolve_selection(selection, _impl(tmp_path))

    def test_repo_and_local(self, tmp_path):
        selection = SourceSelection(repo_override="https://example.com/fork", local_path=Path("/tmp/checkout"))
        with pytest.raises(ConfigurationError, match="Cannot specify both --repo and --local"):
            resolve_selection(selection, _impl(tmp_path))

    def test_conflict_touches_nothing(self, tmp_path):
        """Resolution fails without running any command or checking the path."""
        selection = SourceSelection(ref="main", local_path=tmp_path / "does-not-exist")
        with patch("subprocess.run") as run, patch.object(Path, "exists") as exists:
            with pytest.raises(ConfigurationError):
                resolve_selection(selection, _impl(tmp_path))
        run.assert_not_called()
        exists.assert_not_called()

    def test_repo_override_disallowed(self, tmp_path):
        selection = SourceSelection(repo_override="https://example.com/fork")
        with pytest.raises(ConfigurationError, match="does not support --repo"):
            resolve_selection(selection, _impl(tmp_path, allow_repo_override=False))


class TestGitMode:

    def test_default_ref(self, tmp_path):
        resolved = resolve_selection(SourceSelection(), _impl(tmp_path, default_ref="develop"))
        assert resolved.type is SourceType.GIT
        assert resolved.ref == "develop"
        assert resolved.repository == REPO
        assert resolved.local_path is None

    @pytest.mark.parametrize("selection, flag", [
        (SourceSelection(ref=""), "--ref"),
        (SourceSelection(repo_override=" "), "--repo"),
        (SourceSelection(local_path=""), "--local"),
        (SourceSelection(target=""), "--target"),
    ])
    def test_empty_values_rejected(self, tmp_path, selection, flag):
        with pytest.raises(ConfigurationError, match=f"{flag} requires a value"):
            resolve_selection(selection, _impl(tmp_path))

    def test_explicit_ref(self, tmp_path):
        resolved = resolve_selection(SourceSelection(ref="v0.5.0"), _impl(tmp_path))
        assert resolved.ref == "v0.5.0"

    def test_repo_override(self, tmp_path):
        fork = "https://github.com/user/moq-rs"
        resolved = resolve_selection(SourceSelection(ref="feature", repo_override=fork), _impl(tmp_path))
        assert resolved.repository == fork
        assert resolved.ref == "feature"

    def test_repo_override_without_ref_uses_default(self, tmp_path):
        fork = "https://github.com/user/moq-rs"
        resolved = resolve_selection(SourceSelection(repo_override=fork), _impl(tmp_path))
        assert resolved.repository == fork
        assert resolved.ref == "main"


class TestLocalMode:

    def test_local_path(self, tmp_path):
        resolved = resolve_selection(SourceSelection(local_path=Path("/tmp/checkout")), _impl(tmp_path))
        assert resolved.type is SourceType.LOCAL
        assert resolved.local_path == Path("/tmp/checkout")
        assert resolved.ref is None
        assert resolved.repository == REPO

    def test_path_existence_not_checked(self, tmp_path):
        """Existence is the acquisition manager's concern."""
        missing = tmp_path / "missing"
        resolved = resolve_selection(SourceSelection(local_path=missing), _impl(tmp_path))
        assert resolved.local_path == missing


class TestEmbeddedMode:

    def test_embedded(self, tmp_path):
        impl = _impl(tmp_path, source="embedded", repository="https://github.com/englishm/moq-interop-runner")
        resolved = resolve_selection(SourceSelection(), impl)
        assert resolved.type is SourceType.EMBEDDED
        assert resolved.repository == "https://github.com/englishm/moq-interop-runner"
        assert resolved.ref == "main"

    def test_embedded_target_only(self, tmp_path):
        impl = _impl(tmp_path, source="embedded")
        resolved = resolve_selection(SourceSelection(target="relay"), impl)
        assert resolved.type is SourceType.EMBEDDED

    @pytest.mark.parametrize("selection, flag", [
        (SourceSelection(ref="v1"), "--ref"),
        (SourceSelection(local_path=Path("/tmp/x")), "--local"),
        (SourceSelection(repo_override="https://example.com/x"), "--repo"),
    ])
    def test_embedded_rejects_source_flags(self, tmp_path, selection, flag):
        impl = _impl(tmp_path, source="embedded")
        with pytest.raises(ConfigurationError, match=flag):
            resolve_selection(selection, impl)
