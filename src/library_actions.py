from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Union

from feature_policy import FeaturePolicy
from library_store import LibraryStore, LibraryStoreError
from models import Collection, SavedItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CollectionCreated:
    collection: Collection


@dataclass(frozen=True)
class CollectionLimitReached:
    max_allowed: int


@dataclass(frozen=True)
class ActionDone:
    affected: int = 1


@dataclass(frozen=True)
class ActionFailed:
    reason: str


CreateCollectionOutcome = Union[CollectionCreated, CollectionLimitReached, ActionFailed]
ActionOutcome = Union[ActionDone, ActionFailed]


class LibraryActions:
    """User-driven edits to the library that sit beside the save pipeline.

    Store errors become ``ActionFailed`` so callers render a message
    instead of handling exceptions.
    """

    def __init__(self, *, store: LibraryStore, policy: FeaturePolicy) -> None:
        self.store = store
        self.policy = policy

    def create_collection(self, name: str, color: str, icon: str) -> CreateCollectionOutcome:
        name = name.strip()
        if not name:
            return ActionFailed("Collection name is required")
        try:
            current = self.store.collection_count()
            if not self.policy.can_create_collection(current):
                return CollectionLimitReached(self.policy.max_collections or 0)
            collection = self.store.create_collection(name=name, color=color, icon=icon)
        except LibraryStoreError as exc:
            logger.warning("Create collection failed name=%r error=%s", name, exc)
            return ActionFailed(str(exc))
        logger.info("Created collection id=%s name=%r", collection.id, collection.name)
        return CollectionCreated(collection)

    def rename_collection(self, collection_id: int, name: str, color: str, icon: str) -> ActionOutcome:
        name = name.strip()
        if not name:
            return ActionFailed("Collection name is required")
        try:
            self.store.update_collection(collection_id, name=name, color=color, icon=icon)
        except LibraryStoreError as exc:
            return ActionFailed(str(exc))
        return ActionDone()

    def delete_collection(self, collection_id: int) -> ActionOutcome:
        try:
            released = self.store.delete_collection(collection_id)
        except LibraryStoreError as exc:
            return ActionFailed(str(exc))
        logger.info("Deleted collection id=%s released_items=%s", collection_id, released)
        return ActionDone(affected=released)

    def delete_items(self, item_ids: list[str]) -> ActionOutcome:
        if not item_ids:
            return ActionFailed("No items to delete")
        try:
            deleted = self.store.delete_items(item_ids)
        except LibraryStoreError as exc:
            return ActionFailed(str(exc))
        logger.info("Deleted items count=%s", deleted)
        return ActionDone(affected=deleted)

    def move_items(self, item_ids: list[str], collection_id: int | None) -> ActionOutcome:
        if not item_ids:
            return ActionFailed("No items to move")
        try:
            moved = self.store.move_items(item_ids, collection_id)
        except LibraryStoreError as exc:
            return ActionFailed(str(exc))
        return ActionDone(affected=moved)

    def update_item_details(
        self,
        item_id: str,
        *,
        title: str,
        notes: str | None,
        tags: list[str],
        collection_id: int | None,
    ) -> ActionOutcome:
        title = title.strip()
        if not title:
            return ActionFailed("Title is required")
        cleaned_tags = [tag.strip() for tag in tags if tag.strip()]
        try:
            self.store.update_item_details(
                item_id,
                title=title,
                notes=notes,
                tags=cleaned_tags,
                collection_id=collection_id,
            )
        except LibraryStoreError as exc:
            return ActionFailed(str(exc))
        return ActionDone()

    def items_in_collection(self, collection_id: int | None) -> list[SavedItem]:
        return self.store.items_in_collection(collection_id)
