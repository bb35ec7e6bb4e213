"""
Report ingestion service - turns an uploaded QA workbook into a Report and
its deduplicated Issue rows

Each sheet of the workbook is one issue type (the sheet name). Within a
sheet, rows are deduplicated by (Part Number, Owner).
"""
import io
import uuid
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

import openpyxl

from errors import ValidationError
from query_client import DatabaseClient
from services.grouping import build_issue_records, dedupe_sheet_rows

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    """``2024-05-01T10:00:00.000Z`` style timestamp"""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def read_workbook(content: bytes) -> List[Tuple[str, List[Dict[str, Any]]]]:
    """
    Read every sheet as a list of header->value dicts.

    The first row holds the headers; empty cells are left out of the row
    dict and rows with no values at all are skipped.

    Raises:
        ValidationError: the file cannot be opened or has no sheets
    """
    try:
        workbook = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except Exception as e:
        raise ValidationError(f"Failed to read Excel file: {e}") from e

    try:
        if not workbook.sheetnames:
            raise ValidationError("The uploaded Excel file has no sheets.")

        sheets = []
        for worksheet in workbook.worksheets:
            rows = worksheet.iter_rows(values_only=True)
            headers = next(rows, None) or ()
            headers = [str(header).strip() if header is not None else None for header in headers]

            records = []
            for values in rows:
                record = {
                    header: value
                    for header, value in zip(headers, values)
                    if header and value is not None and value != ""
                }
                if record:
                    records.append(record)

            sheets.append((worksheet.title, records))
        return sheets
    finally:
        workbook.close()


@dataclass
class IngestResult:
    report_id: str
    file_name: str
    total_issues: int
    sheet_counts: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "report_id": self.report_id,
            "file_name": self.file_name,
            "total_issues": self.total_issues,
            "labels": list(self.sheet_counts.keys()),
            "counts": list(self.sheet_counts.values()),
        }


class ReportIngestService:
    """Persist one uploaded workbook through the query façade"""

    def __init__(self, db: DatabaseClient):
        self.db = db

    async def ingest(self, file_name: str, content: bytes) -> IngestResult:
        """
        Parse, deduplicate and persist one workbook.

        Raises:
            ValidationError: unreadable workbook or no sheets
            QATrackerError: the report or issue insert failed; when the issues
                fail, the report row is deleted again
        """
        sheets = read_workbook(content)
        return await self.ingest_sheets(file_name, sheets)

    async def ingest_sheets(self, file_name: str, sheets: List[Tuple[str, List[Dict[str, Any]]]]) -> IngestResult:
        if not sheets:
            raise ValidationError("The uploaded Excel file has no sheets.")

        report_id = str(uuid.uuid4())
        created_at = utc_now_iso()

        issues: List[Dict[str, Any]] = []
        sheet_counts: Dict[str, int] = {}
        for sheet_name, rows in sheets:
            unique_rows = dedupe_sheet_rows(rows)
            sheet_counts[sheet_name] = len(unique_rows)
            issues.extend(
                build_issue_records(
                    sheet_name,
                    unique_rows,
                    report_id=report_id,
                    created_at=created_at,
                    id_factory=lambda: str(uuid.uuid4()),
                )
            )
            logger.info(f"[{sheet_name}] rows={len(rows)} unique={len(unique_rows)}")

        total_issues = len(issues)

        report_response = await self.db.table("reports").insert({
            "id": report_id,
            "file_name": file_name,
            "total_issues": total_issues,
            "uploaded_at": created_at,
        }).execute()
        if report_response.error:
            raise report_response.error

        if issues:
            issues_response = await self.db.table("issues").insert(issues).execute()
            if issues_response.error:
                await self._discard_report(report_id)
                raise issues_response.error

        logger.info(f"✅ Ingested {file_name}: {total_issues} unique issues in {len(sheets)} sheets")
        return IngestResult(
            report_id=report_id,
            file_name=file_name,
            total_issues=total_issues,
            sheet_counts=sheet_counts,
        )

    async def _discard_report(self, report_id: str) -> None:
        """Remove a report whose issues could not be stored"""
        response = await self.db.table("reports").delete().eq("id", report_id).execute()
        if response.error:
            logger.error(f"❌ Failed to remove report {report_id} after issue insert failure: {response.error}")
        else:
            logger.warning(f"Removed report {report_id}: its issues could not be stored")
