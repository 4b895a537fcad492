"""Tests for the in-memory keyed store and repository."""

from __future__ import annotations

import asyncio

import pytest

from alicante_map.db.base import RecordNotFoundError
from alicante_map.db.memory import InMemoryMapRepository, KeyedStore
from alicante_map.db.models import SCHOOL_DEFAULTS, School


def _snapshot(repo: InMemoryMapRepository) -> list[dict]:
    return [s.to_dict() for s in repo.schools.get_all()]


class TestSeed:
    @pytest.mark.asyncio
    async def test_assigns_sequential_ids_in_order(self):
        repo = InMemoryMapRepository()
        await repo.seed_schools([{"name": "A"}, {"name": "B"}])

        schools = await repo.get_all_schools()
        assert [s.id for s in schools] == [1, 2]
        assert [s.name for s in schools] == ["A", "B"]

    @pytest.mark.asyncio
    async def test_applies_defaults(self):
        repo = InMemoryMapRepository()
        [school] = await repo.seed_schools([{"name": "A"}])

        assert school.is_visited is False
        assert school.has_quota is False
        assert school.comments == ""
        assert school.lat is None

    def test_ignores_input_ids(self):
        store = KeyedStore(School, SCHOOL_DEFAULTS)
        created = store.seed([{"id": 40, "name": "A"}, {"id": 7, "name": "B"}])
        assert [s.id for s in created] == [1, 2]

    def test_ids_keep_increasing_across_seeds(self):
        store = KeyedStore(School, SCHOOL_DEFAULTS)
        store.seed([{"name": "A"}])
        created = store.seed([{"name": "B"}, {"name": "C"}])
        assert [s.id for s in created] == [2, 3]
        assert len(store) == 3

    def test_unknown_field_rejects_whole_batch(self):
        store = KeyedStore(School, SCHOOL_DEFAULTS)
        with pytest.raises(ValueError, match="colour"):
            store.seed([{"name": "A"}, {"name": "B", "colour": "red"}])
        assert store.get_all() == []

    @pytest.mark.asyncio
    async def test_record_kinds_have_separate_ids(self, memory_repo):
        agents = await memory_repo.get_all_agents()
        houses = await memory_repo.get_all_houses()
        assert [a.id for a in agents] == [1, 2]
        assert [h.id for h in houses] == [1, 2, 3, 4]


class TestRead:
    @pytest.mark.asyncio
    async def test_get_all_in_insertion_order(self, memory_repo):
        schools = await memory_repo.get_all_schools()
        assert [s.name for s in schools] == [
            "CEIP Benalúa",
            "CEIP Azorín",
            "Colegio La Devesa",
            "CEIP Virgen del Remedio",
        ]

    @pytest.mark.asyncio
    async def test_get_by_id(self, memory_repo):
        school = await memory_repo.get_school(2)
        assert school is not None
        assert school.name == "CEIP Azorín"

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, memory_repo):
        assert await memory_repo.get_school(99999) is None
        assert await memory_repo.get_house(99999) is None
        assert await memory_repo.get_agent(99999) is None

    @pytest.mark.asyncio
    async def test_reads_are_copies(self, memory_repo):
        schools = await memory_repo.get_all_schools()
        schools[0].comments = "changed by caller"
        schools.clear()

        school = await memory_repo.get_school(1)
        assert school.comments == ""
        assert len(await memory_repo.get_all_schools()) == 4


class TestUpdate:
    @pytest.mark.asyncio
    async def test_partial_update_changes_only_given_field(self, memory_repo):
        before = (await memory_repo.get_school(1)).to_dict()

        updated = await memory_repo.update_school(1, {"comments": "x"})

        after = (await memory_repo.get_school(1)).to_dict()
        assert updated.comments == "x"
        assert after == {**before, "comments": "x"}

    @pytest.mark.asyncio
    async def test_update_visible_to_later_reads(self, memory_repo):
        await memory_repo.update_school(3, {"is_visited": True})
        schools = await memory_repo.get_all_schools()
        assert schools[2].is_visited is True

    @pytest.mark.asyncio
    async def test_unknown_id_raises_and_leaves_store_unchanged(self, memory_repo):
        before = _snapshot(memory_repo)

        with pytest.raises(RecordNotFoundError) as exc_info:
            await memory_repo.update_school(99999, {"is_visited": True})

        assert exc_info.value.record_id == 99999
        assert _snapshot(memory_repo) == before

    @pytest.mark.asyncio
    async def test_unknown_field_leaves_record_unchanged(self, memory_repo):
        before = _snapshot(memory_repo)

        with pytest.raises(ValueError):
            await memory_repo.update_school(1, {"comments": "x", "rating": 5})

        assert _snapshot(memory_repo) == before

    @pytest.mark.asyncio
    async def test_id_cannot_be_changed(self, memory_repo):
        with pytest.raises(ValueError):
            await memory_repo.update_school(1, {"id": 50})
        assert (await memory_repo.get_school(1)).id == 1

    @pytest.mark.asyncio
    async def test_empty_update_returns_record_unchanged(self, memory_repo):
        before = (await memory_repo.get_school(2)).to_dict()
        updated = await memory_repo.update_school(2, {})
        assert updated.to_dict() == before

    @pytest.mark.asyncio
    async def test_returned_record_is_a_copy(self, memory_repo):
        updated = await memory_repo.update_school(1, {"comments": "x"})
        updated.comments = "y"
        assert (await memory_repo.get_school(1)).comments == "x"

    @pytest.mark.asyncio
    async def test_concurrent_updates_to_different_fields_both_apply(self, memory_repo):
        await asyncio.gather(
            memory_repo.update_school(4, {"is_visited": True}),
            memory_repo.update_school(4, {"has_quota": True}),
            memory_repo.update_school(4, {"comments": "llamar el lunes"}),
        )
        school = await memory_repo.get_school(4)
        assert (school.is_visited, school.has_quota, school.comments) == (True, True, "llamar el lunes")

    @pytest.mark.asyncio
    async def test_update_house(self, memory_repo):
        house = await memory_repo.update_house(4, {"is_not_available": True, "priority": "HIGH"})
        assert house.is_not_available is True
        assert house.priority == "HIGH"
        assert house.price == 780.0

    @pytest.mark.asyncio
    async def test_update_unknown_house(self, memory_repo):
        with pytest.raises(RecordNotFoundError, match="House not found: 12"):
            await memory_repo.update_house(12, {"is_visited": True})
