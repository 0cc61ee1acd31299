"""Location resolution for journal storage and project tagging.

All entries live in one tree under the user's home directory. Each entry is
tagged with a project name derived from the repository the caller is working
in, or ``"general"`` when there is none.
"""

from __future__ import annotations

import os
import re
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

from loguru import logger

from reverie.core.config import Config, get_config

DEFAULT_PROJECT = "general"
JOURNAL_DIR_NAME = ".reverie"
ENTRIES_DIR_NAME = "entries"
GIT_NOT_A_REPOSITORY = 128

# Alphanumerics, slash, dash, underscore, dot and whitespace only
_SAFE_PATH_RE = re.compile(r"^[a-zA-Z0-9/_\-.\s]+$")


def is_valid_path(dir_path: str) -> bool:
    """Return True if *dir_path* contains only characters safe to hand to a subprocess."""
    return bool(_SAFE_PATH_RE.match(dir_path))


def _home_directory() -> str | None:
    return os.environ.get("HOME") or os.environ.get("USERPROFILE") or None


def resolve_storage_root(config: Config | None = None) -> Path:
    """Return the journal storage root.

    ``paths.journal_dir`` wins when configured. Otherwise the root is
    ``~/.reverie``; without a home directory it falls back to the temp
    directory, which may not survive a reboot.
    """
    config = config or get_config()
    configured = config.get("paths.journal_dir")
    if configured:
        return Path(os.path.expanduser(str(configured))).resolve()

    home = _home_directory()
    if not home:
        fallback = Path(tempfile.gettempdir()) / JOURNAL_DIR_NAME
        logger.warning(
            f"HOME and USERPROFILE are not set. Journal data will be stored in {fallback}, "
            "which may be cleared on reboot."
        )
        return fallback
    return Path(home) / JOURNAL_DIR_NAME


def resolve_entries_path(config: Config | None = None) -> Path:
    """Return the directory holding the per-day entry folders."""
    return resolve_storage_root(config) / ENTRIES_DIR_NAME


# ── Project detection ────────────────────────────────────────────────


@runtime_checkable
class ProjectDetector(Protocol):
    """Finds the repository root containing a directory."""

    def find_repository_root(self, dir_path: Path) -> Path | None:
        """Return the repository root, or None when *dir_path* is not inside one."""
        ...


class GitProjectDetector:
    """Asks ``git rev-parse --show-toplevel`` with a bounded timeout."""

    def __init__(self, timeout: float = 5.0, git_executable: str = "git"):
        self.timeout = timeout
        self.git_executable = git_executable

    def find_repository_root(self, dir_path: Path) -> Path | None:
        try:
            completed = subprocess.run(
                [self.git_executable, "rev-parse", "--show-toplevel"],
                cwd=dir_path,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            logger.error(f"Timed out after {self.timeout}s detecting git root for {dir_path}")
            return None
        except OSError as e:
            logger.error(f"Unexpected error detecting git root for {dir_path}: {e}")
            return None

        if completed.returncode == GIT_NOT_A_REPOSITORY:
            return None
        if completed.returncode != 0:
            logger.error(
                f"git rev-parse exited with {completed.returncode} in {dir_path}: {completed.stderr.strip()}"
            )
            return None

        root = completed.stdout.strip()
        return Path(root) if root else None


class FilesystemProjectDetector:
    """Walks parent directories looking for a ``.git`` entry. No subprocesses."""

    def find_repository_root(self, dir_path: Path) -> Path | None:
        try:
            current = dir_path.resolve()
        except OSError as e:
            logger.error(f"Cannot resolve {dir_path} for project detection: {e}")
            return None
        for candidate in (current, *current.parents):
            if (candidate / ".git").exists():
                return candidate
        return None


def default_detector(config: Config | None = None) -> ProjectDetector:
    """Git-backed detection when git is installed, filesystem walk otherwise."""
    config = config or get_config()
    if shutil.which("git") is None:
        return FilesystemProjectDetector()
    return GitProjectDetector(timeout=float(config.get("project.detection_timeout", 5.0)))


def _is_unprojected_location(dir_path: str) -> bool:
    normalized = os.path.normpath(dir_path)
    excluded = {os.path.sep, os.path.normpath(tempfile.gettempdir()), "/tmp"}
    home = _home_directory()
    if home:
        excluded.add(os.path.normpath(home))
    return normalized in excluded


def detect_project_name(working_path: str | Path | None = None, detector: ProjectDetector | None = None) -> str:
    """
    Derive the project tag for entries written from *working_path*.

    Returns the repository root's directory name, or ``"general"`` when the
    path is not inside a repository, is the home/root/temp directory, contains
    characters outside the safe allow-list, or detection fails. Never raises.

    Args:
        working_path: Directory to inspect. Defaults to the current directory.
        detector: Repository lookup strategy. Defaults to ``default_detector()``.
    """
    if working_path is None:
        try:
            working_path = os.getcwd()
        except OSError as e:
            logger.warning(f"Cannot determine working directory, using '{DEFAULT_PROJECT}': {e}")
            return DEFAULT_PROJECT
    dir_path = str(working_path)

    if not dir_path or _is_unprojected_location(dir_path):
        return DEFAULT_PROJECT

    if not is_valid_path(dir_path):
        logger.warning(f"Path contains potentially unsafe characters, skipping project detection: {dir_path!r}")
        return DEFAULT_PROJECT

    detector = detector or default_detector()
    try:
        root = detector.find_repository_root(Path(dir_path))
    except Exception as e:
        logger.error(f"Project detection failed for {dir_path}: {e}")
        return DEFAULT_PROJECT

    if root is None:
        return DEFAULT_PROJECT
    return root.name or DEFAULT_PROJECT
