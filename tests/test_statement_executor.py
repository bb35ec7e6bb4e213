"""
Statement executor against a SQLite store
"""
import pytest

from errors import StoreError, ValidationError
from models import Condition, DeleteRequest, InsertRequest, SelectRequest, UpdateRequest


def issue(index, **overrides):
    record = {
        "id": f"issue-{index}",
        "report_id": "report-1",
        "part_number": f"P{index:03d}",
        "owner": "ACN",
        "issue_type": "Toolbox Parts",
        "created_at": "2024-05-01T10:00:00.000Z",
    }
    record.update(overrides)
    return record


@pytest.fixture
async def report(executor, report_row):
    await executor.insert(InsertRequest(table="reports", records=[report_row]))
    return report_row


async def test_insert_returns_stored_rows(executor, report):
    result = await executor.insert(InsertRequest(table="issues", records=[issue(1), issue(2)]))

    assert result["count"] == 2
    assert [row["id"] for row in result["data"]] == ["issue-1", "issue-2"]
    assert result["data"][0]["part_number"] == "P001"
    assert not result["data"][0]["is_corrected"]


async def test_insert_rejects_empty_batch(executor):
    with pytest.raises(ValidationError, match="non-empty"):
        await executor.insert(InsertRequest(table="issues", records=[]))


async def test_insert_batch_is_atomic(executor, report):
    bad = issue(2)
    del bad["part_number"]

    with pytest.raises(StoreError):
        await executor.insert(InsertRequest(table="issues", records=[issue(1), bad]))

    result = await executor.select(SelectRequest(table="issues"))
    assert result["data"] == []
    assert result["count"] == 0


async def test_count_is_independent_of_pagination(executor, report):
    await executor.insert(InsertRequest(table="issues", records=[issue(i) for i in range(25)]))

    result = await executor.select(SelectRequest(
        table="issues",
        where=[Condition(field="owner", value="ACN")],
        order_by="part_number",
        limit=10,
        offset=20,
    ))

    assert [row["part_number"] for row in result["data"]] == [f"P{i:03d}" for i in range(20, 25)]
    assert result["count"] == 25


async def test_single_returns_first_row_or_none(executor, report):
    await executor.insert(InsertRequest(table="issues", records=[issue(1), issue(2)]))

    found = await executor.select(SelectRequest(
        table="issues", where=[Condition(field="id", value="issue-2")], single=True,
    ))
    missing = await executor.select(SelectRequest(
        table="issues", where=[Condition(field="id", value="nope")], single=True,
    ))

    assert found["data"]["part_number"] == "P002"
    assert missing["data"] is None
    assert missing["count"] == 0


async def test_update_without_where_is_rejected_and_changes_nothing(executor, report):
    await executor.insert(InsertRequest(table="issues", records=[issue(1)]))

    with pytest.raises(ValidationError, match="WHERE clause is required for UPDATE"):
        await executor.update(UpdateRequest(table="issues", updates={"is_corrected": True}))

    result = await executor.select(SelectRequest(table="issues", where=[Condition(field="is_corrected", value=True)]))
    assert result["count"] == 0


async def test_update_matches_null_owner(executor, report):
    await executor.insert(InsertRequest(table="issues", records=[
        issue(1, part_number="B2", owner=None),
        issue(2, part_number="B2", owner="ACN"),
    ]))

    result = await executor.update(UpdateRequest(
        table="issues",
        updates={"is_corrected": True, "corrected_at": "2024-05-02T08:30:00.000Z"},
        where=[Condition(field="part_number", value="B2"), Condition(field="owner", value=None)],
    ))

    assert result == {"data": {"affectedRows": 1}, "count": 1}
    corrected = await executor.select(SelectRequest(
        table="issues", where=[Condition(field="is_corrected", value=True)],
    ))
    assert [row["id"] for row in corrected["data"]] == ["issue-1"]
    assert str(corrected["data"][0]["corrected_at"]).startswith("2024-05-02 08:30:00")


async def test_delete(executor, report):
    await executor.insert(InsertRequest(table="issues", records=[issue(1), issue(2)]))

    result = await executor.delete(DeleteRequest(table="issues", where=[Condition(field="id", value="issue-1")]))

    assert result["data"]["affectedRows"] == 1
    remaining = await executor.select(SelectRequest(table="issues"))
    assert [row["id"] for row in remaining["data"]] == ["issue-2"]


async def test_unknown_column_surfaces_store_message(executor, report):
    with pytest.raises(StoreError, match="no_such_column"):
        await executor.select(SelectRequest(
            table="issues", where=[Condition(field="no_such_column", value=1)],
        ))


async def test_insert_without_id_or_timestamp_gets_defaults(executor):
    result = await executor.insert(InsertRequest(table="reports", records=[
        {"file_name": "x.xlsx", "total_issues": 1},
    ]))

    row = result["data"][0]
    assert len(row["id"]) == 36
    assert row["file_name"] == "x.xlsx"
    assert row["uploaded_at"] is not None


async def test_insert_with_id_but_no_created_at(executor, report):
    record = issue(1)
    del record["created_at"]

    result = await executor.insert(InsertRequest(table="issues", records=[record]))

    assert result["data"][0]["id"] == "issue-1"
    assert result["data"][0]["created_at"] is not None


async def test_select_null_owner_returns_only_that_row(executor, report):
    await executor.insert(InsertRequest(table="issues", records=[
        issue(1, owner=None),
        issue(2, owner="X"),
    ]))

    result = await executor.select(SelectRequest(
        table="issues", where=[Condition(field="owner", operator="=", value=None)],
    ))

    assert [row["id"] for row in result["data"]] == ["issue-1"]
    assert result["count"] == 1
