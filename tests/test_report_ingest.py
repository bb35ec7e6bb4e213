"""
Workbook ingestion: one sheet per issue type, dedup per sheet
"""
import io

import openpyxl
import pytest

from errors import StoreError, ValidationError
from query_client import DatabaseClient, InProcessTransport
from services.report_ingest_service import ReportIngestService, read_workbook, utc_now_iso


def workbook_bytes(sheets):
    workbook = openpyxl.Workbook()
    workbook.remove(workbook.active)
    for title, rows in sheets.items():
        worksheet = workbook.create_sheet(title)
        for values in rows:
            worksheet.append(values)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def test_utc_now_iso_format():
    stamp = utc_now_iso()
    assert stamp.endswith("Z")
    assert len(stamp) == len("2024-05-01T10:00:00.000Z")


def test_read_workbook_uses_header_row():
    content = workbook_bytes({
        "Toolbox Parts": [
            ["Part Number", "Owner", "Description"],
            ["A1", "ACN", "bolt"],
            [None, None, None],
            ["B2", None, "nut"],
        ],
    })

    sheets = read_workbook(content)

    assert sheets == [("Toolbox Parts", [
        {"Part Number": "A1", "Owner": "ACN", "Description": "bolt"},
        {"Part Number": "B2", "Description": "nut"},
    ])]


def test_read_workbook_rejects_garbage():
    with pytest.raises(ValidationError):
        read_workbook(b"this is not a workbook")


async def test_ingest_dedupes_each_sheet(db):
    content = workbook_bytes({
        "NonEnglishCharacters": [
            ["Part Number", "Owner"],
            ["A1", "ACN"],
            ["A1", "ACN"],
            ["A1", "XYZ"],
        ],
        "Toolbox Parts": [
            ["Part Number", "Owner"],
            ["A1", "ACN"],
        ],
    })

    result = await ReportIngestService(db).ingest("QA_week_18.xlsx", content)

    assert result.total_issues == 3
    assert result.to_dict()["labels"] == ["NonEnglishCharacters", "Toolbox Parts"]
    assert result.to_dict()["counts"] == [2, 1]

    report = await db.table("reports").select("*").eq("id", result.report_id).single().execute()
    assert report.data["file_name"] == "QA_week_18.xlsx"
    assert report.data["total_issues"] == 3

    issues = await db.table("issues").select("*").eq("report_id", result.report_id).execute()
    assert issues.count == 3
    assert sorted((row["issue_type"], row["owner"]) for row in issues.data) == [
        ("NonEnglishCharacters", "ACN"),
        ("NonEnglishCharacters", "XYZ"),
        ("Toolbox Parts", "ACN"),
    ]


async def test_ingest_sheet_without_issues(db):
    result = await ReportIngestService(db).ingest_sheets("empty.xlsx", [("Toolbox Parts", [])])

    assert result.total_issues == 0
    reports = await db.table("reports").select("*").execute()
    assert reports.count == 1


async def test_ingest_requires_sheets(db):
    with pytest.raises(ValidationError):
        await ReportIngestService(db).ingest_sheets("empty.xlsx", [])


async def test_duplicate_rows_collapse_to_one_issue_per_key(db):
    sheets = [("Surface Parts", [
        {"Part Number": "100", "Owner": "ACN"},
        {"Part Number": "100", "Owner": "ACN"},
        {"Part Number": "200"},
    ])]

    result = await ReportIngestService(db).ingest_sheets("surface.xlsx", sheets)

    issues = await db.table("issues").select("part_number, owner, issue_type").order("part_number").execute()
    assert result.total_issues == 2
    assert issues.data == [
        {"part_number": "100", "owner": "ACN", "issue_type": "Surface Parts"},
        {"part_number": "200", "owner": None, "issue_type": "Surface Parts"},
    ]


class FailingIssueInserts(InProcessTransport):
    """Store whose issues table rejects every insert"""

    async def post(self, path, payload):
        if path == "/insert" and payload["table"] == "issues":
            raise StoreError("Duplicate entry for key 'PRIMARY'")
        return await super().post(path, payload)


async def test_failed_issue_insert_removes_the_report(db, executor):
    failing_db = DatabaseClient(FailingIssueInserts(executor))
    sheets = [("Toolbox Parts", [{"Part Number": "A1", "Owner": "ACN"}])]

    with pytest.raises(StoreError):
        await ReportIngestService(failing_db).ingest_sheets("a.xlsx", sheets)

    reports = await db.table("reports").select("*").execute()
    assert reports.data == []
