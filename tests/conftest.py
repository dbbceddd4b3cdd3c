"""Shared fixtures for threadboard tests."""
import pytest

from threadboard.board import Board
from threadboard.config import BoardConfig, DatabaseConfig, DiskConfig, S3Config
from threadboard.repository import PostRepository
from threadboard.store import MemoryStore
from threadboard.uploads import DiskMediaStorage


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def repo(store):
    return PostRepository(store)


@pytest.fixture
def cfg(tmp_path):
    """Config that never touches the environment, PostgreSQL or S3."""
    return BoardConfig(
        db=DatabaseConfig(),
        s3=S3Config(),
        disk=DiskConfig(upload_dir=str(tmp_path / "uploads")),
        store_driver="memory",
        media_driver="disk",
        page_size=3,
    )


@pytest.fixture
def board(cfg, store):
    media = DiskMediaStorage(cfg.disk, thumb_max=cfg.thumbnail_max_size)
    with Board(cfg, store=store, media=media) as b:
        yield b


def make_thread(repo, title="op", now=100):
    """Helper: create an OP and return its id."""
    return repo.create(title, f"{title} body", now=now)
