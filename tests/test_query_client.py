"""
Query façade over the in-process and HTTP transports
"""
import httpx
import pytest

from errors import StoreError, TransportError, ValidationError
from main import app
from query_client import DatabaseClient, HttpTransport, InProcessTransport
from query_client.builders import SelectQuery


@pytest.fixture
async def http_db(pool):
    """Façade talking HTTP to the FastAPI app, without a network"""
    app.state.store_pool = pool
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test/api") as client:
        yield DatabaseClient(HttpTransport("http://test/api", client=client))
    del app.state.store_pool


def test_builders_are_immutable():
    base = DatabaseClient(transport=None).table("issues").select("*").eq("is_corrected", False)

    owned = base.eq("owner", "ACN")
    paged = base.range(20, 29)

    assert len(base.where) == 1
    assert len(owned.where) == 2
    assert base.limit_value is None
    assert (paged.offset_value, paged.limit_value) == (20, 10)


def test_select_query_wire_format():
    query = (
        SelectQuery(table="issues")
        .select("id, owner")
        .eq("owner", None)
        .in_("issue_type", ["Toolbox Parts"])
        .or_("part_number.ilike.%a%,owner.eq.ACN")
        .order("created_at", ascending=False)
        .limit(5)
    )

    wire = query.to_request().to_wire()

    assert wire["select"] == "id, owner"
    assert wire["where"] == [{"field": "owner", "operator": "=", "value": None}]
    assert wire["in"] == [{"field": "issue_type", "values": ["Toolbox Parts"]}]
    assert wire["or"][0]["clauses"][0] == {"field": "part_number", "operator": "ilike", "value": "%a%"}
    assert wire["orderBy"] == "created_at"
    assert wire["orderDirection"] == "desc"
    assert wire["limit"] == 5


async def test_malformed_or_string_comes_back_as_error(db):
    query = db.table("issues").select("*").or_("part_number.between.1")

    response = await query.execute()

    assert response.data is None
    assert isinstance(response.error, ValidationError)
    assert "between" in str(response.error)


@pytest.mark.parametrize("build", [
    lambda table: table.select("*").range(5, 2),
    lambda table: table.select("*").limit(-1),
])
async def test_invalid_pagination_comes_back_as_error(db, build):
    response = await build(db.table("issues")).execute()

    assert response.data is None
    assert isinstance(response.error, ValidationError)
    assert "limit" in str(response.error)


async def test_in_process_select_and_count(seeded_db):
    response = await seeded_db.table("issues").select("*").eq("is_corrected", False).range(0, 0).execute()

    assert response.ok
    assert len(response.data) == 1
    assert response.count == 3


async def test_empty_result_is_an_empty_list(db):
    response = await db.table("issues").select("*").execute()
    assert response.data == []
    assert response.error is None


async def test_update_without_filter_comes_back_as_error(seeded_db):
    response = await seeded_db.table("issues").update({"is_corrected": True}).execute()

    assert response.data is None
    assert isinstance(response.error, ValidationError)
    assert "WHERE clause is required" in str(response.error)


async def test_unknown_in_process_path(executor):
    with pytest.raises(TransportError):
        await InProcessTransport(executor).post("/truncate", {"table": "issues"})


async def test_http_round_trip(http_db, report_row):
    inserted = await http_db.table("reports").insert(report_row).execute()
    assert inserted.ok, inserted.error
    assert inserted.data[0]["id"] == "report-1"

    fetched = await http_db.table("reports").select("id, file_name").eq("id", "report-1").single().execute()
    assert fetched.data == {"id": "report-1", "file_name": "QA_week_18.xlsx"}


async def test_http_validation_error_is_surfaced(http_db):
    response = await http_db.table("issues").delete().execute()

    assert response.data is None
    assert isinstance(response.error, ValidationError)
    assert str(response.error) == "WHERE clause is required for DELETE"


async def test_http_store_error_is_surfaced(http_db):
    response = await http_db.table("missing_table").select("*").execute()

    assert isinstance(response.error, StoreError)
    assert "missing_table" in str(response.error)


async def test_http_timeout_becomes_transport_error():
    def timeout(request):
        raise httpx.ReadTimeout("timed out", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(timeout), base_url="http://test/api") as client:
        db = DatabaseClient(HttpTransport("http://test/api", timeout=0.1, client=client))
        response = await db.table("issues").select("*").execute()

    assert response.data is None
    assert isinstance(response.error, TransportError)
    assert "timed out" in str(response.error)
