"""Component operations against an in-process mongomock database."""

from __future__ import annotations

import pytest
from bson import ObjectId

from ems_database_mongo import (
    AbstractQuery,
    DatabaseComponent,
    ErrorKind,
    ObjectIdCodec,
    Projection,
)
from ems_database_mongo.ports import IDatabaseComponent

N_DOCS = 10
INSERT_ORDER = [3, 7, 0, 9, 1, 5, 8, 2, 6, 4]


@pytest.fixture
async def numbered(component):
    """Collection ``items`` holding documents n=0..9, inserted shuffled."""
    result = await component.insert(
        "items",
        [{"n": n, "group": n % 2, "label": f"item-{n}"} for n in INSERT_ORDER],
    )
    assert result.is_success
    return component


def _ns(docs):
    return [d["n"] for d in docs]


def test_component_satisfies_capability_interface(component) -> None:
    assert isinstance(component, IDatabaseComponent)


@pytest.mark.asyncio
async def test_example_scenario(motor_handle, make_client) -> None:
    """insert two → get first → delete first → get first is NOT_FOUND."""
    client = make_client(motor_handle)
    opened = await DatabaseComponent.open(
        client,
        ObjectIdCodec(),
        {"host": "localhost", "port": 27017, "database": "testdb"},
    )
    assert opened.is_success
    component = opened.value
    assert client.urls == ["mongodb://localhost:27017/testdb"]

    ids = (await component.insert("things", [{"name": "a"}, {"name": "b"}])).unwrap()
    assert len(ids) == 2

    got = await component.get("things", ids[0])
    assert got.value == {"name": "a", "_id": ids[0]}

    deleted = await component.delete("things", ids[0])
    assert deleted.value is True

    missing = await component.get("things", ids[0])
    assert missing.kind is ErrorKind.NOT_FOUND

    await component.disconnect()


class TestQuery:
    """Tests for query()."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("skip", "limit"),
        [(0, None), (0, 3), (2, 3), (8, 5), (10, 5), (12, None), (3, 0), (0, 20)],
    )
    async def test_pagination_count_and_order(self, numbered, skip, limit) -> None:
        query = AbstractQuery(skip=skip, limit=limit, sort=("n",))

        result = await numbered.query("items", query)

        cap = N_DOCS if limit is None else limit
        expected = max(0, min(cap, N_DOCS - skip))
        start = min(skip, N_DOCS)
        assert result.is_success
        assert _ns(result.value) == list(range(start, start + expected))

    @pytest.mark.asyncio
    async def test_secondary_sort_breaks_ties(self, numbered) -> None:
        result = await numbered.query("items", AbstractQuery(sort=("group", "-n")))

        assert _ns(result.value) == [8, 6, 4, 2, 0, 9, 7, 5, 3, 1]

    @pytest.mark.asyncio
    async def test_no_query_returns_everything(self, numbered) -> None:
        result = await numbered.query("items")

        assert sorted(_ns(result.value)) == list(range(N_DOCS))

    @pytest.mark.asyncio
    async def test_zero_matches_is_empty_success(self, numbered) -> None:
        result = await numbered.query("items", {"n": {"$gt": 100}})

        assert result.is_success
        assert result.value == []

    @pytest.mark.asyncio
    async def test_unknown_collection_is_empty(self, component) -> None:
        result = await component.query("nothing-here")

        assert result.value == []

    @pytest.mark.asyncio
    async def test_filter_operators_pass_through(self, numbered) -> None:
        query = AbstractQuery(filter_criteria={"n": {"$gte": 7}}, sort=("n",))

        result = await numbered.query("items", query)

        assert _ns(result.value) == [7, 8, 9]

    @pytest.mark.asyncio
    async def test_inclusion_projection(self, numbered) -> None:
        query = AbstractQuery(projection=Projection.include("label"), limit=1)

        result = await numbered.query("items", query)

        assert set(result.value[0]) == {"_id", "label"}

    @pytest.mark.asyncio
    async def test_exclusion_projection(self, numbered) -> None:
        query = AbstractQuery(projection=Projection.omit("label", "group"), limit=1)

        result = await numbered.query("items", query)

        assert set(result.value[0]) == {"_id", "n"}

    @pytest.mark.asyncio
    async def test_rql_string(self, numbered) -> None:
        result = await numbered.query("items", "ge(n,5)&sort(-n)&limit(2)")

        assert _ns(result.value) == [9, 8]

    @pytest.mark.asyncio
    async def test_raw_filter_mapping(self, numbered) -> None:
        result = await numbered.query("items", {"group": 1})

        assert sorted(_ns(result.value)) == [1, 3, 5, 7, 9]

    @pytest.mark.asyncio
    async def test_identifier_strings_in_filter_are_converted(self, component) -> None:
        ids = (await component.insert("things", [{"k": 1}, {"k": 2}])).unwrap()

        result = await component.query("things", {"_id": ids[1]})

        assert result.value == [{"_id": ids[1], "k": 2}]

    @pytest.mark.asyncio
    async def test_returned_identifiers_are_strings(self, numbered) -> None:
        result = await numbered.query("items", AbstractQuery(limit=3))

        assert all(isinstance(doc["_id"], str) for doc in result.value)


class TestInsert:
    """Tests for insert()."""

    @pytest.mark.asyncio
    async def test_identifiers_follow_input_order(self, component) -> None:
        names = ["a", "b", "c", "d"]

        ids = (await component.insert("things", [{"name": n} for n in names])).unwrap()

        assert len(ids) == len(names)
        for identifier, name in zip(ids, names):
            assert (await component.get("things", identifier)).value["name"] == name

    @pytest.mark.asyncio
    async def test_caller_documents_are_not_mutated(self, component) -> None:
        docs = [{"name": "x"}]

        await component.insert("things", docs)

        assert docs == [{"name": "x"}]

    @pytest.mark.asyncio
    async def test_duplicate_identifier_is_backend_error(self, component) -> None:
        ids = (await component.insert("things", [{"name": "x"}])).unwrap()
        result = await component.insert("things", [{"_id": ObjectId(ids[0])}])

        assert result.kind is ErrorKind.BACKEND_ERROR
        assert result.error.cause is not None


class TestUpdate:
    """Tests for update()."""

    @pytest.mark.asyncio
    async def test_sets_fields_and_keeps_others(self, numbered) -> None:
        doc = (await numbered.query("items", {"n": 4})).value[0]

        result = await numbered.update("items", doc["_id"], {"label": "changed"})

        assert result.value is True
        updated = (await numbered.get("items", doc["_id"])).value
        assert updated == {**doc, "label": "changed"}

    @pytest.mark.asyncio
    async def test_operator_patch(self, numbered) -> None:
        doc = (await numbered.query("items", {"n": 4})).value[0]

        await numbered.update("items", doc["_id"], {"$inc": {"n": 100}})

        assert (await numbered.get("items", doc["_id"])).value["n"] == 104

    @pytest.mark.asyncio
    async def test_unmatched_identifier_is_still_acknowledged(self, component) -> None:
        result = await component.update("things", str(ObjectId()), {"a": 1})

        assert result.value is True
        assert (await component.query("things")).value == []

    @pytest.mark.asyncio
    async def test_malformed_identifier(self, component) -> None:
        result = await component.update("things", "not-an-id", {"a": 1})

        assert result.kind is ErrorKind.INVALID_IDENTIFIER


class TestGetDeleteClear:
    @pytest.mark.asyncio
    async def test_get_malformed_identifier(self, component) -> None:
        result = await component.get("things", "zzz")

        assert result.kind is ErrorKind.INVALID_IDENTIFIER

    @pytest.mark.asyncio
    async def test_delete_removes_only_one_document(self, numbered) -> None:
        doc = (await numbered.query("items", {"n": 0})).value[0]

        result = await numbered.delete("items", doc["_id"])

        assert result.value is True
        remaining = (await numbered.query("items", AbstractQuery(sort=("n",)))).value
        assert _ns(remaining) == list(range(1, N_DOCS))

    @pytest.mark.asyncio
    async def test_delete_missing_is_acknowledged(self, component) -> None:
        result = await component.delete("things", str(ObjectId()))

        assert result.value is True

    @pytest.mark.asyncio
    async def test_clear_then_query_is_empty(self, numbered) -> None:
        await numbered.insert("other", [{"keep": True}])

        result = await numbered.clear("items")

        assert result.value is True
        assert (await numbered.query("items")).value == []
        assert len((await numbered.query("other")).value) == 1

    @pytest.mark.asyncio
    async def test_operations_after_disconnect(self, numbered) -> None:
        await numbered.disconnect()

        result = await numbered.query("items")

        assert result.kind is ErrorKind.NOT_CONNECTED
