from __future__ import annotations

from feature_policy import FeaturePolicy, Tier, parse_tier


def test_scouter_limits() -> None:
    policy = FeaturePolicy(Tier.SCOUTER)

    assert policy.max_saved_items == 3
    assert policy.can_save(2) is True
    assert policy.can_save(3) is False
    assert policy.remaining_saves(1) == 2
    assert policy.remaining_saves(10) == 0
    assert policy.can_create_collection(3) is False
    assert policy.has_ai_access is False


def test_producer_limits() -> None:
    policy = FeaturePolicy(Tier.PRODUCER)

    assert policy.max_saved_items == 1000
    assert policy.max_collections == 10
    assert policy.remaining_collections(4) == 6
    assert policy.has_cloud_sync is False


def test_icon_is_unlimited_and_premium() -> None:
    policy = FeaturePolicy(Tier.ICON)

    assert policy.max_saved_items is None
    assert policy.can_save(1_000_000) is True
    assert policy.can_create_collection(500) is True
    assert policy.remaining_saves(5) is None
    assert policy.remaining_collections(5) is None
    assert policy.has_advanced_search and policy.has_cloud_sync and policy.has_ai_access


def test_parse_tier_falls_back_to_scouter() -> None:
    assert parse_tier("PRODUCER") is Tier.PRODUCER
    assert parse_tier(" icon ") is Tier.ICON
    assert parse_tier("platinum") is Tier.SCOUTER
    assert parse_tier(None) is Tier.SCOUTER


def test_snapshot() -> None:
    snapshot = FeaturePolicy(Tier.SCOUTER).snapshot(saved_items=1, collections=3)
    assert snapshot["tier"] == "scouter"
    assert snapshot["remaining_saves"] == 2
    assert snapshot["remaining_collections"] == 0
