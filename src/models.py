from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class SavedItem:
    id: str
    url: str
    title: str
    thumbnail: str
    tags: list[str]
    created_at: int
    collection_id: int | None = None
    notes: str | None = None

    def to_row(self) -> dict[str, Any]:
        row = asdict(self)
        row["tags"] = list(self.tags)
        return row

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "SavedItem":
        url = row["url"]
        if not isinstance(url, str) or not url:
            raise ValueError(f"Item row has no url: {row.get('id')}")
        collection_id = row.get("collection_id")
        return cls(
            id=str(row["id"]),
            url=url,
            title=str(row.get("title") or ""),
            thumbnail=str(row.get("thumbnail") or ""),
            tags=[str(tag) for tag in row.get("tags") or []],
            created_at=int(row.get("created_at") or 0),
            collection_id=int(collection_id) if collection_id is not None else None,
            notes=row.get("notes"),
        )


@dataclass(frozen=True)
class Collection:
    id: int
    name: str
    color: str
    icon: str
    item_count: int = field(default=0, compare=False)

    def to_row(self) -> dict[str, Any]:
        # item_count is derived from the items log, never stored.
        return {"id": self.id, "name": self.name, "color": self.color, "icon": self.icon}

    @classmethod
    def from_row(cls, row: dict[str, Any], item_count: int = 0) -> "Collection":
        return cls(
            id=int(row["id"]),
            name=str(row.get("name") or ""),
            color=str(row.get("color") or ""),
            icon=str(row.get("icon") or ""),
            item_count=item_count,
        )
