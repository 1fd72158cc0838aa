"""Unit tests for the in-memory entity registry."""

from __future__ import annotations

import random
from dataclasses import replace

from datastore.registry import EntityRegistry, build_default_registry


def test_add_water_body_seeds_history_and_default_name() -> None:
    registry = EntityRegistry(rng=random.Random(1))

    first = registry.add_water_body()
    second = registry.add_water_body("Pond")

    assert first.name == "Water Body 1"
    assert len(first.readings) == 12
    assert second.name == "Pond"
    assert first.id != second.id
    assert [body.id for body in registry.list_water_bodies()] == [first.id, second.id]


def test_seed_respects_reading_capacity() -> None:
    registry = EntityRegistry(seed_count=10, reading_capacity=4, rng=random.Random(1))

    body = registry.add_water_body()

    assert len(body.readings) == 4


def test_add_toilet_starts_empty() -> None:
    registry = EntityRegistry()

    registry.add_toilet()
    toilet = registry.add_toilet()

    assert toilet.name == "Toilet 2"
    assert toilet.usage == 0
    assert toilet.history == ()
    assert registry.get_toilet(toilet.id) == toilet


def test_remove_unknown_id_is_noop() -> None:
    registry = EntityRegistry()
    body = registry.add_water_body()
    toilet = registry.add_toilet()

    assert registry.remove_water_body(9999) is False
    assert registry.remove_toilet(9999) is False
    assert registry.remove_water_body(body.id) is True
    assert registry.remove_toilet(toilet.id) is True
    assert registry.get_water_body(body.id) is None
    assert registry.list_toilets() == []


def test_update_replaces_records_without_touching_snapshots() -> None:
    registry = EntityRegistry()
    toilet = registry.add_toilet()
    snapshot = registry.list_toilets()

    updated = registry.update_toilets(lambda current: replace(current, usage=current.usage + 7))

    assert updated[0].usage == 7
    assert registry.get_toilet(toilet.id).usage == 7
    assert snapshot[0].usage == 0


def test_build_default_registry_seeds_named_entities() -> None:
    build_default_registry.cache_clear()
    try:
        registry = build_default_registry()
        assert [body.name for body in registry.list_water_bodies()] == ["Lake A", "River B"]
        assert [toilet.name for toilet in registry.list_toilets()] == ["Toilet 1", "Toilet 2"]
    finally:
        build_default_registry.cache_clear()
