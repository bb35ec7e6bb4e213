"""
Parts service - grouped Part Identity view of stored issues and the
corrected/incorrect transitions
"""
import logging
from typing import Any, Dict, List, Optional

from errors import ValidationError
from query_client import DatabaseClient, DBResponse
from models.conditions import OrClause, OrGroup
from services.grouping import (
    GroupedIssue,
    category_options,
    filter_by_category,
    group_issues,
    paginate,
)
from services.report_ingest_service import utc_now_iso

logger = logging.getLogger(__name__)

STATUS_OPEN = "open"
STATUS_CORRECTED = "corrected"


def search_group(term: str) -> OrGroup:
    """``part_number`` or ``owner`` containing ``term``"""
    pattern = f"%{term.strip()}%"
    return OrGroup.of(
        OrClause(field="part_number", operator="ilike", value=pattern),
        OrClause(field="owner", operator="ilike", value=pattern),
    )


class PartsService:
    """Parts table backed by the query façade"""

    def __init__(self, db: DatabaseClient, items_per_page: int = 10):
        self.db = db
        self.items_per_page = items_per_page

    async def fetch_grouped(self, status: str = STATUS_OPEN, search: Optional[str] = None) -> List[GroupedIssue]:
        """
        Raw issues of one status, grouped by Part Identity.

        Raises:
            ValidationError: unknown status
            QATrackerError: the store query failed
        """
        if status not in (STATUS_OPEN, STATUS_CORRECTED):
            raise ValidationError(f"Unknown status '{status}', expected 'open' or 'corrected'")

        corrected = status == STATUS_CORRECTED
        query = (
            self.db.table("issues")
            .select("*")
            .eq("is_corrected", corrected)
            .order("corrected_at" if corrected else "created_at", ascending=False)
        )
        if search and search.strip():
            query = query.or_(search_group(search))

        response = await query.execute()
        if response.error:
            raise response.error

        return group_issues(response.data or [], corrected=corrected)

    async def list_parts(
        self,
        status: str = STATUS_OPEN,
        page: int = 1,
        search: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Dict[str, Any]:
        """One page of grouped parts plus the category dropdown options"""
        groups = await self.fetch_grouped(status, search)
        options = category_options(groups)
        result = paginate(filter_by_category(groups, category), page, self.items_per_page)

        payload = result.to_dict()
        payload["status"] = status
        payload["categories"] = options
        return payload

    async def mark_corrected(self, part_number: str, owner: Optional[str]) -> DBResponse:
        """Open -> Corrected on every row of the Part Identity"""
        return await self._set_correction(part_number, owner, {
            "is_corrected": True,
            "corrected_at": utc_now_iso(),
        })

    async def mark_incorrect(self, part_number: str, owner: Optional[str]) -> DBResponse:
        """Corrected -> Open on every row of the Part Identity"""
        return await self._set_correction(part_number, owner, {
            "is_corrected": False,
            "corrected_at": None,
        })

    async def _set_correction(self, part_number: str, owner: Optional[str], values: Dict[str, Any]) -> DBResponse:
        if not part_number:
            raise ValidationError("part_number is required")

        # No issue_type filter: all rows of the part change together
        response = await (
            self.db.table("issues")
            .update(values)
            .eq("part_number", part_number)
            .eq("owner", owner)
            .execute()
        )
        if response.error:
            logger.error(f"Failed to update correction state of {part_number}/{owner}: {response.error}")
        else:
            logger.info(f"Part {part_number}/{owner} is_corrected={values['is_corrected']} ({response.count} rows)")
        return response
