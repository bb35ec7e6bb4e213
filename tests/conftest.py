"""
Pytest configuration and shared fixtures for the Part QA Tracker tests.
"""
import pytest

from database import StorePool
from query_client import DatabaseClient, InProcessTransport
from services.statement_executor import StatementExecutor


@pytest.fixture
def store_url(tmp_path):
    """File-backed SQLite store, fresh per test"""
    return f"sqlite+aiosqlite:///{tmp_path / 'qa_tracker.db'}"


@pytest.fixture
async def pool(store_url):
    """Store pool with the reports/issues tables created"""
    store_pool = StorePool(store_url)
    await store_pool.create_tables()
    yield store_pool
    await store_pool.dispose()


@pytest.fixture
def executor(pool):
    return StatementExecutor(pool)


@pytest.fixture
def db(executor):
    """Query façade calling the executor in-process"""
    return DatabaseClient(InProcessTransport(executor))


@pytest.fixture
def report_row():
    return {
        "id": "report-1",
        "file_name": "QA_week_18.xlsx",
        "total_issues": 0,
        "uploaded_at": "2024-05-01T10:00:00.000Z",
    }


@pytest.fixture
async def seeded_db(db, report_row):
    """
    Two parts spread over several issue rows:

    - A1/ACN: open, two issue types
    - B2/no owner: one row already corrected
    """
    await db.table("reports").insert(report_row).execute()
    response = await db.table("issues").insert([
        {"id": "i1", "report_id": "report-1", "part_number": "A1", "owner": "ACN",
         "issue_type": "Toolbox Parts", "created_at": "2024-05-01T10:00:00.000Z"},
        {"id": "i2", "report_id": "report-1", "part_number": "A1", "owner": "ACN",
         "issue_type": "Surface Parts Report", "created_at": "2024-04-30T09:00:00.000Z"},
        {"id": "i3", "report_id": "report-1", "part_number": "B2", "owner": None,
         "issue_type": "Toolbox Parts", "created_at": "2024-05-01T10:00:00.000Z"},
        {"id": "i4", "report_id": "report-1", "part_number": "B2", "owner": None,
         "issue_type": "NonEnglishCharacters", "created_at": "2024-05-01T10:00:00.000Z",
         "is_corrected": True, "corrected_at": "2024-05-02T08:30:00.000Z"},
    ]).execute()
    assert response.ok, response.error
    return db
