from __future__ import annotations

from feature_policy import FeaturePolicy, Tier
from library_actions import (
    ActionDone,
    ActionFailed,
    CollectionCreated,
    CollectionLimitReached,
    LibraryActions,
)
from library_store import LibraryStore
from models import SavedItem


def _actions(store: LibraryStore, tier: Tier = Tier.SCOUTER) -> LibraryActions:
    return LibraryActions(store=store, policy=FeaturePolicy(tier))


def _seed(store: LibraryStore, item_id: str, url: str) -> None:
    store.insert(SavedItem(id=item_id, url=url, title="t", thumbnail="", tags=["X"], created_at=1))


def test_create_collection_respects_tier_limit(store: LibraryStore) -> None:
    actions = _actions(store)
    for name in ("Gym", "Recipes", "Travel"):
        assert isinstance(actions.create_collection(name, "#FF6B9D", "📁"), CollectionCreated)

    assert actions.create_collection("Overflow", "#FF6B9D", "📁") == CollectionLimitReached(max_allowed=3)
    assert store.collection_count() == 3


def test_create_collection_requires_name(store: LibraryStore) -> None:
    assert isinstance(_actions(store).create_collection("   ", "#FF6B9D", "📁"), ActionFailed)


def test_delete_collection_keeps_items(store: LibraryStore) -> None:
    actions = _actions(store)
    created = actions.create_collection("Gym", "#FF6B9D", "💪")
    assert isinstance(created, CollectionCreated)
    _seed(store, "a", "https://x.com/u/status/1")
    assert actions.move_items(["a"], created.collection.id) == ActionDone(affected=1)

    assert actions.delete_collection(created.collection.id) == ActionDone(affected=1)
    assert [item.id for item in actions.items_in_collection(None)] == ["a"]


def test_delete_items_requires_ids(store: LibraryStore) -> None:
    assert _actions(store).delete_items([]) == ActionFailed("No items to delete")


def test_update_item_details(store: LibraryStore) -> None:
    _seed(store, "a", "https://x.com/u/status/1")
    actions = _actions(store)

    assert actions.update_item_details("a", title=" Saved ", notes="n", tags=["Gym", " "], collection_id=None) == ActionDone()
    item = store.get_by_id("a")
    assert item.title == "Saved"
    assert item.tags == ["Gym"]

    assert isinstance(actions.update_item_details("a", title="", notes=None, tags=[], collection_id=None), ActionFailed)
    failed = actions.update_item_details("missing", title="x", notes=None, tags=[], collection_id=None)
    assert isinstance(failed, ActionFailed)
    assert "not found" in failed.reason


def test_rename_unknown_collection_fails(store: LibraryStore) -> None:
    outcome = _actions(store).rename_collection(7, "New", "#000000", "x")
    assert isinstance(outcome, ActionFailed)
