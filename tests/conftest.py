"""Shared test fixtures for reverie."""

import re
import tempfile
import zlib

import pytest

from reverie.core.config import reset_config
from reverie.journal.embeddings import EmbeddingEngine, reset_embedding_engine
from reverie.journal.paths import FilesystemProjectDetector

FAKE_DIMENSIONS = 64


class FakeEmbeddingModel:
    """Bag-of-words hashing model: texts sharing words get similar vectors."""

    def __init__(self, dimensions: int = FAKE_DIMENSIONS):
        self.dimensions = dimensions
        self.calls = 0

    def encode(self, text: str) -> list[float]:
        self.calls += 1
        vector = [0.0] * self.dimensions
        for word in re.findall(r"[a-z0-9]+", text.lower()):
            vector[zlib.crc32(word.encode()) % self.dimensions] += 1.0
        return vector


@pytest.fixture(autouse=True)
def _reset_singletons():
    """Reset process-wide config and engine between tests."""
    reset_config()
    reset_embedding_engine()
    yield
    reset_config()
    reset_embedding_engine()


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture
def home(tmp_path, monkeypatch):
    """Point HOME at a temp dir so the journal lives in tmp_path/.reverie."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("USERPROFILE", raising=False)
    monkeypatch.delenv("REVERIE_PATHS__JOURNAL_DIR", raising=False)
    return tmp_path


@pytest.fixture
def entries_path(home):
    return home / ".reverie" / "entries"


@pytest.fixture
def fake_model():
    return FakeEmbeddingModel()


@pytest.fixture
def engine(fake_model):
    """An EmbeddingEngine backed by the fake model, so nothing is downloaded."""
    return EmbeddingEngine(model_name="fake", model_factory=lambda: fake_model)


@pytest.fixture
def project_dir(tmp_path):
    """A directory inside a fake repository named 'alpha-repo'."""
    repo = tmp_path / "work" / "alpha-repo"
    (repo / ".git").mkdir(parents=True)
    sub = repo / "src"
    sub.mkdir()
    return sub


@pytest.fixture
def detector():
    return FilesystemProjectDetector()
