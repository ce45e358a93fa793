from __future__ import annotations

from dataclasses import replace
from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from config import AppConfig
from library_store import LibraryStore
from metadata_fetcher import PageMetadata


class FakeFetcher:
    def __init__(self, metadata: PageMetadata | None = None) -> None:
        self.metadata = metadata
        self.calls: list[str] = []

    async def fetch(self, url: str) -> PageMetadata | None:
        self.calls.append(url)
        return self.metadata


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        debug=False,
        tier="scouter",
        items_file=tmp_path / "reels.jsonl",
        collections_file=tmp_path / "collections.jsonl",
        library_lock_file=tmp_path / ".library.lock",
        fetch_timeout_sec=10.0,
        fetch_user_agent="reelvault-test",
        service_host="127.0.0.1",
        service_port=8000,
    )


@pytest.fixture
def icon_config(app_config: AppConfig) -> AppConfig:
    return replace(app_config, tier="icon")


@pytest.fixture
def store(app_config: AppConfig) -> LibraryStore:
    return LibraryStore(
        items_file=app_config.items_file,
        collections_file=app_config.collections_file,
        lock_file=app_config.library_lock_file,
    )


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher(PageMetadata(title="Leg day in 30 seconds", thumbnail="https://cdn.example.com/t.jpg"))
