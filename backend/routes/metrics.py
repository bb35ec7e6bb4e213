"""
Metrics Routes
Chart data for the dashboard
"""
from fastapi import APIRouter, Depends
import logging

from query_client import DatabaseClient
from routes.dependencies import get_db
from routes.store import error_response
from services.metrics_service import MetricsService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/metrics", tags=["metrics"])


def get_metrics_service(db: DatabaseClient = Depends(get_db)) -> MetricsService:
    return MetricsService(db)


@router.get("/issue-types")
async def issue_types(service: MetricsService = Depends(get_metrics_service)):
    try:
        return await service.issue_type_summary()
    except Exception as e:
        logger.error(f"Failed to load issue type metrics: {e}")
        return error_response(e)


@router.get("/corrections")
async def corrections(service: MetricsService = Depends(get_metrics_service)):
    try:
        return await service.correction_summary()
    except Exception as e:
        logger.error(f"Failed to load correction metrics: {e}")
        return error_response(e)


@router.get("/corrected-parts")
async def corrected_parts(service: MetricsService = Depends(get_metrics_service)):
    try:
        return await service.corrected_by_type()
    except Exception as e:
        logger.error(f"Failed to load corrected part metrics: {e}")
        return error_response(e)


@router.get("/categories")
async def categories(service: MetricsService = Depends(get_metrics_service)):
    try:
        return await service.category_metrics()
    except Exception as e:
        logger.error(f"Failed to load category metrics: {e}")
        return error_response(e)
