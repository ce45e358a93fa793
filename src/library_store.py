from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable

from file_lock import file_lock
from models import Collection, SavedItem

logger = logging.getLogger(__name__)

DELETED_KEY = "deleted"


def _sort_number(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


class LibraryStoreError(Exception):
    pass


class DuplicateUrlError(LibraryStoreError):
    def __init__(self, url: str) -> None:
        super().__init__(f"Item with URL '{url}' is already saved")
        self.url = url


class ItemNotFoundError(LibraryStoreError):
    def __init__(self, item_id: str) -> None:
        super().__init__(f"Item not found: {item_id}")
        self.item_id = item_id


class CollectionNotFoundError(LibraryStoreError):
    def __init__(self, collection_id: int) -> None:
        super().__init__(f"Collection not found: {collection_id}")
        self.collection_id = collection_id


class ItemLimitError(LibraryStoreError):
    def __init__(self, max_allowed: int) -> None:
        super().__init__(f"Item limit reached: {max_allowed}")
        self.max_allowed = max_allowed


class LibraryStore:
    """Saved items and collections kept as two append-only JSONL logs.

    Every change appends the full row; the latest row per id wins and a
    row with ``"deleted": true`` removes the id. All access happens under
    one flock so the URL uniqueness check and the insert are atomic across
    processes. Logs are rewritten with live rows only once they grow past
    ``compact_after_lines``.
    """

    def __init__(
        self,
        *,
        items_file: Path,
        collections_file: Path,
        lock_file: Path,
        compact_after_lines: int = 1000,
    ) -> None:
        self.items_file = items_file
        self.collections_file = collections_file
        self.lock_file = lock_file
        self.compact_after_lines = max(100, int(compact_after_lines))

    def _read_jsonl(self, path: Path) -> list[dict[str, Any]]:
        if not path.exists():
            return []

        rows: list[dict[str, Any]] = []
        with path.open("r", encoding="utf-8") as f:
            for line_no, raw_line in enumerate(f, start=1):
                line = raw_line.strip()
                if not line:
                    continue
                try:
                    payload = json.loads(line)
                except json.JSONDecodeError:
                    logger.warning("Skipping corrupt row path=%s line=%s", path, line_no)
                    continue
                if isinstance(payload, dict) and payload.get("id") is not None:
                    rows.append(payload)
        return rows

    def _append_jsonl(self, path: Path, payload: dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(payload, ensure_ascii=False) + "\n")

    def _materialize_locked(self, path: Path) -> dict[str, dict[str, Any]]:
        latest: dict[str, dict[str, Any]] = {}
        for row in self._read_jsonl(path):
            key = str(row["id"])
            if row.get(DELETED_KEY):
                latest.pop(key, None)
                continue
            latest[key] = row
        return latest

    def _items_locked(self) -> dict[str, SavedItem]:
        items: dict[str, SavedItem] = {}
        for key, row in self._materialize_locked(self.items_file).items():
            try:
                items[key] = SavedItem.from_row(row)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed item row id=%s error=%r", key, exc)
        return items

    def _collection_rows_locked(self) -> dict[int, dict[str, Any]]:
        rows: dict[int, dict[str, Any]] = {}
        for key, row in self._materialize_locked(self.collections_file).items():
            try:
                rows[int(key)] = row
            except ValueError:
                logger.warning("Skipping malformed collection row id=%s", key)
        return rows

    def _count_lines(self, path: Path) -> int:
        if not path.exists():
            return 0
        with path.open("r", encoding="utf-8") as f:
            return sum(1 for _ in f)

    def _compact_locked(self, path: Path, sort_key: str) -> None:
        live = sorted(
            self._materialize_locked(path).values(),
            key=lambda row: (_sort_number(row.get(sort_key)), str(row["id"])),
        )
        tmp_path = path.with_name(f"{path.name}.tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            for row in live:
                f.write(json.dumps(row, ensure_ascii=False) + "\n")
        tmp_path.replace(path)
        logger.debug("Compacted path=%s rows=%s", path, len(live))

    def _maybe_compact_locked(self) -> None:
        if self._count_lines(self.items_file) > self.compact_after_lines:
            self._compact_locked(self.items_file, "created_at")
        if self._count_lines(self.collections_file) > self.compact_after_lines:
            self._compact_locked(self.collections_file, "id")

    def _require_collection_locked(self, collection_id: int | None) -> None:
        if collection_id is None:
            return
        if int(collection_id) not in self._collection_rows_locked():
            raise CollectionNotFoundError(int(collection_id))

    @staticmethod
    def _newest_first(items: Iterable[SavedItem]) -> list[SavedItem]:
        return sorted(items, key=lambda item: (item.created_at, item.id), reverse=True)

    # Saved items

    def exists_by_url(self, url: str) -> bool:
        with file_lock(self.lock_file, shared=True):
            return any(item.url == url for item in self._items_locked().values())

    def count(self) -> int:
        with file_lock(self.lock_file, shared=True):
            return len(self._items_locked())

    def insert(self, item: SavedItem, *, max_items: int | None = None) -> None:
        """Append a new item; ``max_items`` caps the live item count (``None`` = no cap)."""
        with file_lock(self.lock_file):
            items = self._items_locked()
            if item.id in items:
                raise LibraryStoreError(f"Item id already exists: {item.id}")
            if any(existing.url == item.url for existing in items.values()):
                raise DuplicateUrlError(item.url)
            if max_items is not None and len(items) >= max_items:
                raise ItemLimitError(max_items)
            self._require_collection_locked(item.collection_id)
            self._append_jsonl(self.items_file, item.to_row())
            self._maybe_compact_locked()

    def get_by_id(self, item_id: str) -> SavedItem | None:
        with file_lock(self.lock_file, shared=True):
            return self._items_locked().get(item_id)

    def list_items(self) -> list[SavedItem]:
        with file_lock(self.lock_file, shared=True):
            return self._newest_first(self._items_locked().values())

    def items_in_collection(self, collection_id: int | None) -> list[SavedItem]:
        with file_lock(self.lock_file, shared=True):
            items = self._items_locked().values()
            return self._newest_first(item for item in items if item.collection_id == collection_id)

    def update_item_details(
        self,
        item_id: str,
        *,
        title: str,
        notes: str | None,
        tags: list[str],
        collection_id: int | None,
    ) -> SavedItem:
        with file_lock(self.lock_file):
            current = self._items_locked().get(item_id)
            if current is None:
                raise ItemNotFoundError(item_id)
            self._require_collection_locked(collection_id)

            updated = SavedItem(
                id=current.id,
                url=current.url,
                title=title,
                thumbnail=current.thumbnail,
                tags=list(tags),
                created_at=current.created_at,
                collection_id=collection_id,
                notes=notes,
            )
            self._append_jsonl(self.items_file, updated.to_row())
            self._maybe_compact_locked()
            return updated

    def move_items(self, item_ids: list[str], collection_id: int | None) -> int:
        with file_lock(self.lock_file):
            items = self._items_locked()
            missing = [item_id for item_id in item_ids if item_id not in items]
            if missing:
                raise ItemNotFoundError(missing[0])
            self._require_collection_locked(collection_id)

            for item_id in dict.fromkeys(item_ids):
                row = items[item_id].to_row()
                row["collection_id"] = collection_id
                self._append_jsonl(self.items_file, row)
            self._maybe_compact_locked()
            return len(set(item_ids))

    def delete_items(self, item_ids: list[str]) -> int:
        with file_lock(self.lock_file):
            items = self._items_locked()
            deleted = 0
            for item_id in dict.fromkeys(item_ids):
                if item_id not in items:
                    continue
                self._append_jsonl(self.items_file, {"id": item_id, DELETED_KEY: True})
                deleted += 1
            self._maybe_compact_locked()
            return deleted

    # Collections

    def collection_count(self) -> int:
        with file_lock(self.lock_file, shared=True):
            return len(self._collection_rows_locked())

    def list_collections(self) -> list[Collection]:
        with file_lock(self.lock_file, shared=True):
            counts: dict[int, int] = {}
            for item in self._items_locked().values():
                if item.collection_id is not None:
                    counts[item.collection_id] = counts.get(item.collection_id, 0) + 1
            rows = self._collection_rows_locked()
            return [Collection.from_row(rows[key], item_count=counts.get(key, 0)) for key in sorted(rows)]

    def get_collection(self, collection_id: int) -> Collection | None:
        with file_lock(self.lock_file, shared=True):
            row = self._collection_rows_locked().get(int(collection_id))
            if row is None:
                return None
            item_count = sum(1 for item in self._items_locked().values() if item.collection_id == int(collection_id))
            return Collection.from_row(row, item_count=item_count)

    def create_collection(self, *, name: str, color: str, icon: str) -> Collection:
        with file_lock(self.lock_file):
            # Ids of deleted collections are still in the log until compaction.
            known_ids = [int(row["id"]) for row in self._read_jsonl(self.collections_file) if str(row["id"]).isdigit()]
            collection = Collection(id=max(known_ids, default=0) + 1, name=name, color=color, icon=icon)
            self._append_jsonl(self.collections_file, collection.to_row())
            self._maybe_compact_locked()
            return collection

    def update_collection(self, collection_id: int, *, name: str, color: str, icon: str) -> Collection:
        with file_lock(self.lock_file):
            if int(collection_id) not in self._collection_rows_locked():
                raise CollectionNotFoundError(int(collection_id))
            collection = Collection(id=int(collection_id), name=name, color=color, icon=icon)
            self._append_jsonl(self.collections_file, collection.to_row())
            self._maybe_compact_locked()
            return collection

    def delete_collection(self, collection_id: int) -> int:
        """Drop a collection and uncategorize its items; returns how many moved."""
        with file_lock(self.lock_file):
            collection_id = int(collection_id)
            if collection_id not in self._collection_rows_locked():
                raise CollectionNotFoundError(collection_id)

            released = 0
            for item in self._items_locked().values():
                if item.collection_id != collection_id:
                    continue
                row = item.to_row()
                row["collection_id"] = None
                self._append_jsonl(self.items_file, row)
                released += 1

            self._append_jsonl(self.collections_file, {"id": collection_id, DELETED_KEY: True})
            self._maybe_compact_locked()
            return released
