"""Tests for reverie.journal.paths."""

import subprocess
import tempfile
from pathlib import Path

import pytest

from reverie.core.config import Config
from reverie.journal.paths import (
    DEFAULT_PROJECT,
    FilesystemProjectDetector,
    GitProjectDetector,
    ProjectDetector,
    detect_project_name,
    is_valid_path,
    resolve_entries_path,
    resolve_storage_root,
)


class RecordingDetector:
    def __init__(self, root=None, error=None):
        self.root = root
        self.error = error
        self.calls = []

    def find_repository_root(self, dir_path):
        self.calls.append(dir_path)
        if self.error:
            raise self.error
        return self.root


class TestStorageRoot:
    def test_under_home(self, home):
        assert resolve_storage_root() == home / ".reverie"
        assert resolve_entries_path() == home / ".reverie" / "entries"

    def test_userprofile_used_without_home(self, tmp_path, monkeypatch):
        monkeypatch.delenv("HOME", raising=False)
        monkeypatch.setenv("USERPROFILE", str(tmp_path))
        assert resolve_storage_root() == tmp_path / ".reverie"

    def test_falls_back_to_temp_without_home(self, monkeypatch):
        monkeypatch.delenv("HOME", raising=False)
        monkeypatch.delenv("USERPROFILE", raising=False)
        root = resolve_storage_root()
        assert root == Path(tempfile.gettempdir()) / ".reverie"

    def test_configured_journal_dir_wins(self, home, tmp_path):
        config = Config(defaults={"paths": {"journal_dir": str(tmp_path / "elsewhere")}})
        assert resolve_entries_path(config) == (tmp_path / "elsewhere").resolve() / "entries"

    def test_env_journal_dir(self, home, tmp_path, monkeypatch):
        monkeypatch.setenv("REVERIE_PATHS__JOURNAL_DIR", str(tmp_path / "env-journal"))
        assert resolve_storage_root() == (tmp_path / "env-journal").resolve()


class TestIsValidPath:
    @pytest.mark.parametrize("path", ["/home/user/my-project", "/srv/app_1/src", "/Users/me/My Projects/x.y"])
    def test_safe(self, path):
        assert is_valid_path(path)

    @pytest.mark.parametrize("path", ["/tmp/x; rm -rf /", "/tmp/$(whoami)", "/tmp/`id`", "/tmp/a|b", ""])
    def test_unsafe(self, path):
        assert not is_valid_path(path)


class TestDetectProjectName:
    def test_repository_root_name(self, home, project_dir, detector):
        assert detect_project_name(project_dir, detector=detector) == "alpha-repo"

    def test_not_a_repository(self, home, tmp_path, detector):
        plain = tmp_path / "plain"
        plain.mkdir()
        assert detect_project_name(plain, detector=detector) == DEFAULT_PROJECT

    @pytest.mark.parametrize("special", ["/", "/tmp"])
    def test_root_and_tmp_are_general(self, home, special):
        fake = RecordingDetector(root=Path("/should/not/matter"))
        assert detect_project_name(special, detector=fake) == DEFAULT_PROJECT
        assert fake.calls == []

    def test_home_is_general(self, home):
        fake = RecordingDetector(root=Path("/repo/dotfiles"))
        assert detect_project_name(str(home), detector=fake) == DEFAULT_PROJECT
        assert fake.calls == []

    def test_unsafe_path_skips_detection(self, home):
        fake = RecordingDetector(root=Path("/repo/evil"))
        assert detect_project_name("/tmp/x; rm -rf ~", detector=fake) == DEFAULT_PROJECT
        assert fake.calls == []

    def test_detector_errors_never_raise(self, home, tmp_path):
        fake = RecordingDetector(error=RuntimeError("boom"))
        assert detect_project_name(tmp_path, detector=fake) == DEFAULT_PROJECT

    def test_defaults_to_cwd(self, home, project_dir, detector, monkeypatch):
        monkeypatch.chdir(project_dir)
        assert detect_project_name(detector=detector) == "alpha-repo"


class TestGitProjectDetector:
    def test_satisfies_protocol(self):
        assert isinstance(GitProjectDetector(), ProjectDetector)
        assert isinstance(FilesystemProjectDetector(), ProjectDetector)

    def test_returns_toplevel(self, monkeypatch, tmp_path):
        def fake_run(cmd, **kwargs):
            assert cmd == ["git", "rev-parse", "--show-toplevel"]
            assert kwargs["timeout"] == 2.0
            return subprocess.CompletedProcess(cmd, 0, stdout="/code/beta-repo\n", stderr="")

        monkeypatch.setattr(subprocess, "run", fake_run)
        assert GitProjectDetector(timeout=2.0).find_repository_root(tmp_path) == Path("/code/beta-repo")

    def test_not_a_repository_exit_code(self, monkeypatch, tmp_path):
        monkeypatch.setattr(
            subprocess,
            "run",
            lambda cmd, **kw: subprocess.CompletedProcess(cmd, 128, stdout="", stderr="fatal: not a git repository"),
        )
        assert GitProjectDetector().find_repository_root(tmp_path) is None

    def test_other_failure(self, monkeypatch, tmp_path):
        monkeypatch.setattr(
            subprocess, "run", lambda cmd, **kw: subprocess.CompletedProcess(cmd, 1, stdout="", stderr="weird")
        )
        assert GitProjectDetector().find_repository_root(tmp_path) is None

    def test_timeout(self, monkeypatch, tmp_path):
        def hang(cmd, **kwargs):
            raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

        monkeypatch.setattr(subprocess, "run", hang)
        assert GitProjectDetector(timeout=0.1).find_repository_root(tmp_path) is None

    def test_missing_git_binary(self, tmp_path):
        detector = GitProjectDetector(git_executable="definitely-not-git-xyz")
        assert detector.find_repository_root(tmp_path) is None


class TestFilesystemProjectDetector:
    def test_walks_up(self, project_dir):
        root = FilesystemProjectDetector().find_repository_root(project_dir)
        assert root is not None
        assert root.name == "alpha-repo"
