from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
import time
from typing import Protocol, Union
from urllib.parse import urlsplit
import uuid

from feature_policy import FeaturePolicy
from library_store import DuplicateUrlError, ItemLimitError
from metadata_fetcher import PageMetadata
from models import SavedItem
from tag_inferrer import infer_tags
from url_normalizer import is_shareable_url, normalize

logger = logging.getLogger(__name__)

FALLBACK_TITLE = "Shared Reel"


class ItemStore(Protocol):
    def exists_by_url(self, url: str) -> bool: ...

    def count(self) -> int: ...

    def insert(self, item: SavedItem, *, max_items: int | None = None) -> None: ...

    def get_by_id(self, item_id: str) -> SavedItem | None: ...


class Fetcher(Protocol):
    async def fetch(self, url: str) -> PageMetadata | None: ...


@dataclass(frozen=True)
class Success:
    item: SavedItem


@dataclass(frozen=True)
class AlreadyExists:
    url: str


@dataclass(frozen=True)
class LimitReached:
    max_allowed: int


@dataclass(frozen=True)
class InvalidUrl:
    raw_url: str


@dataclass(frozen=True)
class Error:
    reason: str


SaveOutcome = Union[Success, AlreadyExists, LimitReached, InvalidUrl, Error]


def outcome_message(outcome: SaveOutcome) -> str:
    if isinstance(outcome, Success):
        return f"Saved \"{outcome.item.title}\" to your vault"
    if isinstance(outcome, AlreadyExists):
        return "Already in your vault"
    if isinstance(outcome, LimitReached):
        return f"Vault full: your plan allows {outcome.max_allowed} saved reels"
    if isinstance(outcome, InvalidUrl):
        return "Invalid link: share an http(s) URL"
    return f"Could not save reel: {outcome.reason}"


def fallback_title(url: str) -> str:
    """``host - first-path-segment`` for links whose page could not be scraped."""
    try:
        parts = urlsplit(url)
        host = parts.netloc.removeprefix("www.")
        if not host:
            return FALLBACK_TITLE
        segment = next((part for part in parts.path.split("/") if part.strip()), None)
        return f"{host} - {segment}" if segment else host
    except Exception:  # noqa: BLE001
        return FALLBACK_TITLE


def _now_millis() -> int:
    return time.time_ns() // 1_000_000


class SaveReelPipeline:
    def __init__(self, *, store: ItemStore, fetcher: Fetcher, policy: FeaturePolicy) -> None:
        self.store = store
        self.fetcher = fetcher
        self.policy = policy
        # Saves of one normalized URL run one at a time within this process.
        self._url_locks: dict[str, tuple[asyncio.Lock, int]] = {}

    def _acquire_slot(self, url: str) -> asyncio.Lock:
        lock, users = self._url_locks.get(url, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._url_locks[url] = (lock, users + 1)
        return lock

    def _release_slot(self, url: str) -> None:
        lock, users = self._url_locks[url]
        if users <= 1:
            del self._url_locks[url]
        else:
            self._url_locks[url] = (lock, users - 1)

    async def save(self, raw_url: str) -> SaveOutcome:
        candidate = raw_url.strip()
        if not is_shareable_url(candidate):
            logger.info("Rejected invalid url=%r", candidate)
            return InvalidUrl(raw_url=candidate)

        url = normalize(candidate)
        lock = self._acquire_slot(url)
        try:
            async with lock:
                return await self._save_normalized(url)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Save failed url=%s", url)
            return Error(reason=str(exc) or exc.__class__.__name__)
        finally:
            self._release_slot(url)

    async def _save_normalized(self, url: str) -> SaveOutcome:
        if await asyncio.to_thread(self.store.exists_by_url, url):
            logger.info("Already saved url=%s", url)
            return AlreadyExists(url=url)

        current_count = await asyncio.to_thread(self.store.count)
        if not self.policy.can_save(current_count):
            limit = self.policy.max_saved_items or 0
            logger.info("Save limit reached tier=%s limit=%s", self.policy.tier, limit)
            return LimitReached(max_allowed=limit)

        metadata = await self.fetcher.fetch(url)
        if metadata is None:
            title, thumbnail = fallback_title(url), ""
        else:
            title, thumbnail = metadata.title, metadata.thumbnail or ""

        item = SavedItem(
            id=str(uuid.uuid4()),
            url=url,
            title=title or fallback_title(url),
            thumbnail=thumbnail,
            tags=infer_tags(url),
            created_at=_now_millis(),
        )
        try:
            await asyncio.to_thread(self.store.insert, item, max_items=self.policy.max_saved_items)
        except DuplicateUrlError:
            logger.info("Lost insert race url=%s", url)
            return AlreadyExists(url=url)
        except ItemLimitError as exc:
            logger.info("Save limit reached on insert tier=%s limit=%s", self.policy.tier, exc.max_allowed)
            return LimitReached(max_allowed=exc.max_allowed)

        logger.info("Saved item_id=%s url=%s tags=%s", item.id, url, ",".join(item.tags))
        return Success(item=item)
