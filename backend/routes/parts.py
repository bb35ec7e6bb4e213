"""
Parts Routes
Grouped parts table and the corrected/incorrect transitions
"""
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from typing import Optional
import logging

from config import get_settings
from query_client import DatabaseClient
from routes.dependencies import get_db
from routes.store import error_response
from services.parts_service import PartsService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/parts", tags=["parts"])


# ============================================
# REQUEST MODELS
# ============================================

class PartIdentityRequest(BaseModel):
    part_number: str
    owner: Optional[str] = None


def get_parts_service(db: DatabaseClient = Depends(get_db)) -> PartsService:
    return PartsService(db, items_per_page=get_settings().items_per_page)


# ============================================
# ROUTES
# ============================================

@router.get("")
async def list_parts(
    status: str = Query("open"),
    page: int = Query(1, ge=1),
    search: Optional[str] = None,
    category: Optional[str] = None,
    service: PartsService = Depends(get_parts_service),
):
    """One page of parts grouped by (part_number, owner)"""
    try:
        return await service.list_parts(status=status, page=page, search=search, category=category)
    except Exception as e:
        logger.error(f"Failed to list parts: {e}")
        return error_response(e)


@router.post("/correct")
async def mark_corrected(body: PartIdentityRequest, service: PartsService = Depends(get_parts_service)):
    """Mark every row of the part as corrected"""
    try:
        response = await service.mark_corrected(body.part_number, body.owner)
        if response.error:
            return error_response(response.error)
        return {"success": True, "affected_rows": response.count}
    except Exception as e:
        logger.error(f"Failed to mark part corrected: {e}")
        return error_response(e)


@router.post("/incorrect")
async def mark_incorrect(body: PartIdentityRequest, service: PartsService = Depends(get_parts_service)):
    """Move every row of the part back to open"""
    try:
        response = await service.mark_incorrect(body.part_number, body.owner)
        if response.error:
            return error_response(response.error)
        return {"success": True, "affected_rows": response.count}
    except Exception as e:
        logger.error(f"Failed to mark part incorrect: {e}")
        return error_response(e)
