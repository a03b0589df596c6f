"""
Repository tests against the in-memory DynamoDB fake.
"""

from decimal import Decimal

import pytest

from members_api.repositories import ClassRepository, MemberRepository
from members_api.repositories.base import from_dynamo, to_dynamo
from members_api.services.sanitizer import sanitize_create_member_request

from tests.conftest import FailingTable, FakeTable


class TestDynamoConversion:
    def test_floats_round_trip_through_decimal(self):
        stored = to_dynamo({"weight": 180.5, "tags": [1.5], "flag": True})
        assert stored["weight"] == Decimal("180.5")
        assert stored["flag"] is True
        assert from_dynamo(stored) == {"weight": 180.5, "tags": [1.5], "flag": True}

    def test_integral_decimals_come_back_as_int(self):
        value = from_dynamo(Decimal("5"))
        assert value == 5 and isinstance(value, int)


class TestMemberRepository:
    def test_create_assigns_id(self, member_repository, members_table):
        member = member_repository.create(sanitize_create_member_request({"name": "Aldric"}))
        assert member["id"]
        assert member["id"] in members_table.items
        assert member_repository.get_by_id(member["id"])["name"] == "Aldric"

    def test_create_stores_nullable_references_as_null(self, member_repository):
        member = member_repository.create(sanitize_create_member_request({"name": "Aldric"}))
        stored = member_repository.get_by_id(member["id"])
        assert stored["tower_id"] is None
        assert "born" not in stored

    def test_get_by_id_missing(self, member_repository):
        assert member_repository.get_by_id("nope") is None

    def test_get_all_uses_listing_projection(self):
        table = FakeTable(
            [{"id": str(i), "name": f"M{i}", "descript": "long bio", "owner": "x"} for i in range(5)],
            page_size=2,
        )
        repository = MemberRepository(table, FakeTable())
        members = repository.get_all()
        assert len(members) == 5
        assert all(set(m) <= {"id", "name", "born", "died", "image", "groups"} for m in members)
        assert table.count_calls("scan") == 3

    def test_get_by_owner_follows_every_page(self):
        items = [{"id": f"a{i}", "name": f"A{i}", "owner": "alice"} for i in range(6)]
        items += [{"id": "b1", "name": "B1", "owner": "bob"}]
        table = FakeTable(items, page_size=2, indexes={"owner-index": "owner"})
        repository = MemberRepository(table, FakeTable())

        members = repository.get_by_owner("alice")

        ids = [m["id"] for m in members]
        assert sorted(ids) == [f"a{i}" for i in range(6)]
        assert len(set(ids)) == 6
        assert table.count_calls("query") == 3
        assert table.count_calls("scan") == 0

    def test_update_writes_only_given_fields(self, member_repository):
        member = member_repository.create(
            sanitize_create_member_request({"name": "Aldric", "title": "Sir"})
        )
        updated = member_repository.update(member["id"], {"name": "Aldric II", "weight": 181.5})
        assert updated["name"] == "Aldric II"
        assert updated["title"] == "Sir"
        assert updated["weight"] == 181.5

    def test_update_rejects_empty_changes(self, member_repository):
        with pytest.raises(ValueError):
            member_repository.update("x", {})

    def test_delete_removes_item(self, member_repository, members_table):
        member = member_repository.create(sanitize_create_member_request({"name": "Aldric"}))
        member_repository.delete(member["id"])
        assert member["id"] not in members_table.items

    def test_sessions_query_and_count(self):
        sessions = FakeTable(
            [{"report-id": f"r{i}", "member-id": "m1"} for i in range(5)]
            + [{"report-id": "r9", "member-id": "m2"}],
            key="report-id",
            page_size=2,
            indexes={"member-id-report-id-index": "member-id"},
        )
        repository = MemberRepository(FakeTable(), sessions)
        assert len(repository.get_sessions_by_member_id("m1")) == 5
        assert repository.count_sessions_by_member_id("m1") == 5
        assert repository.count_sessions_by_member_id("nobody") == 0

    def test_errors_are_reraised(self):
        repository = MemberRepository(FailingTable(), FailingTable())
        with pytest.raises(RuntimeError):
            repository.get_by_id("x")
        with pytest.raises(RuntimeError):
            repository.get_by_owner("alice")


class TestLookupRepository:
    def test_get_all_reads_every_page(self):
        table = FakeTable([{"id": f"c{i}", "name": f"Class {i}"} for i in range(7)], page_size=3)
        assert len(ClassRepository(table).get_all()) == 7
        assert table.count_calls("scan") == 3
