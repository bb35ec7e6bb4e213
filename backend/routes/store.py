"""
Store Routes
Generic query/insert/update/delete endpoints consumed by the query façade
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import logging

from errors import QATrackerError
from models.requests import DeleteRequest, InsertRequest, SelectRequest, UpdateRequest
from routes.dependencies import get_executor
from services.statement_executor import StatementExecutor

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["store"])


def error_response(error: Exception) -> JSONResponse:
    status_code = error.status_code if isinstance(error, QATrackerError) else 500
    return JSONResponse(status_code=status_code, content={"error": str(error)})


# ============================================
# ROUTES
# ============================================

@router.get("/health")
async def health_check():
    """Liveness probe"""
    return {"status": "OK", "message": "Server is running"}


@router.post("/query")
async def run_query(body: SelectRequest, executor: StatementExecutor = Depends(get_executor)):
    """SELECT with total match count for pagination"""
    try:
        return await executor.select(body)
    except Exception as e:
        logger.error(f"Query failed: {e}")
        return error_response(e)


@router.post("/insert")
async def run_insert(body: InsertRequest, executor: StatementExecutor = Depends(get_executor)):
    """Atomic batch INSERT; returns the stored rows"""
    try:
        return await executor.insert(body)
    except Exception as e:
        logger.error(f"Insert failed: {e}")
        return error_response(e)


@router.post("/update")
async def run_update(body: UpdateRequest, executor: StatementExecutor = Depends(get_executor)):
    """UPDATE guarded by a mandatory WHERE/IN filter"""
    try:
        return await executor.update(body)
    except Exception as e:
        logger.error(f"Update failed: {e}")
        return error_response(e)


@router.post("/delete")
async def run_delete(body: DeleteRequest, executor: StatementExecutor = Depends(get_executor)):
    """DELETE guarded by a mandatory WHERE filter"""
    try:
        return await executor.delete(body)
    except Exception as e:
        logger.error(f"Delete failed: {e}")
        return error_response(e)
