"""
Report Routes
Workbook upload and upload history
"""
from fastapi import APIRouter, Depends, File, UploadFile
import logging

from errors import ValidationError
from query_client import DatabaseClient
from routes.dependencies import get_db
from routes.store import error_response
from services.metrics_service import MetricsService
from services.report_ingest_service import ReportIngestService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/reports", tags=["reports"])

EXCEL_EXTENSIONS = (".xlsx", ".xlsm")


@router.post("/upload")
async def upload_report(file: UploadFile = File(...), db: DatabaseClient = Depends(get_db)):
    """
    Ingest one QA workbook: one sheet per issue type, rows deduplicated by
    (Part Number, Owner) within each sheet.
    """
    try:
        file_name = file.filename or "report.xlsx"
        if not file_name.lower().endswith(EXCEL_EXTENSIONS):
            raise ValidationError("Please upload an Excel file (.xlsx).")

        content = await file.read()
        logger.info(f"Received {file_name} ({len(content) / 1024:.1f}KB)")

        result = await ReportIngestService(db).ingest(file_name, content)
        return result.to_dict()
    except Exception as e:
        logger.error(f"Failed to upload report: {e}")
        return error_response(e)


@router.get("")
async def list_reports(db: DatabaseClient = Depends(get_db)):
    """Upload history, newest first"""
    try:
        return {"reports": await MetricsService(db).upload_history()}
    except Exception as e:
        logger.error(f"Failed to list reports: {e}")
        return error_response(e)
