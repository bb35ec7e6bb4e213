"""
Metrics service - aggregates behind the dashboard charts and history view
"""
import logging
from typing import Any, Dict, List

from query_client import DatabaseClient
from services.grouping import group_issues, part_identity, split_issue_types

logger = logging.getLogger(__name__)

MAX_CATEGORY_CARDS = 5


class MetricsService:
    """Chart data computed from the issues and reports tables"""

    def __init__(self, db: DatabaseClient):
        self.db = db

    async def _rows(self, query) -> List[Dict[str, Any]]:
        response = await query.execute()
        if response.error:
            raise response.error
        return response.data or []

    async def issue_type_summary(self) -> Dict[str, Any]:
        """Unique part numbers per issue type, plus the latest report's file name"""
        rows = await self._rows(
            self.db.table("issues").select("issue_type, part_number").order("issue_type")
        )

        groups: Dict[str, set] = {}
        for row in rows:
            groups.setdefault(row["issue_type"], set()).add(row["part_number"])

        latest = await self.db.table("reports").select("file_name, uploaded_at") \
            .order("uploaded_at", ascending=False).limit(1).single().execute()

        labels = list(groups.keys())
        return {
            "labels": labels,
            "counts": [len(groups[label]) for label in labels],
            "totals": {label: len(groups[label]) for label in labels},
            "file_name": latest.data["file_name"] if latest.ok and latest.data else None,
        }

    async def correction_summary(self) -> Dict[str, Any]:
        """Corrected and uncorrected rows per issue type"""
        rows = await self._rows(
            self.db.table("issues").select("issue_type, is_corrected").order("issue_type")
        )

        groups: Dict[str, Dict[str, int]] = {}
        for row in rows:
            stats = groups.setdefault(row["issue_type"], {"corrected": 0, "uncorrected": 0})
            stats["corrected" if row["is_corrected"] else "uncorrected"] += 1

        labels = sorted(groups.keys())
        return {
            "labels": labels,
            "uncorrected": [groups[label]["uncorrected"] for label in labels],
            "corrected": [groups[label]["corrected"] for label in labels],
        }

    async def corrected_by_type(self) -> Dict[str, Any]:
        """Corrected rows per issue type, zero for types with none corrected"""
        all_rows = await self._rows(self.db.table("issues").select("issue_type").order("issue_type"))
        corrected_rows = await self._rows(
            self.db.table("issues").select("issue_type").eq("is_corrected", True).order("issue_type")
        )

        counts: Dict[str, int] = {}
        for row in all_rows:
            counts.setdefault(row["issue_type"], 0)
        for row in corrected_rows:
            if row["issue_type"] in counts:
                counts[row["issue_type"]] += 1

        return {"labels": list(counts.keys()), "counts": list(counts.values())}

    async def category_metrics(self) -> Dict[str, Any]:
        """
        Per category total / corrected / remaining unique parts.

        A Part Identity counts as corrected when any of its rows is; it is
        counted once for each issue type it carries.
        """
        rows = await self._rows(
            self.db.table("issues").select("part_number, owner, issue_type, is_corrected")
        )

        corrected_keys = {
            part_identity(str(row["part_number"]), row.get("owner"))
            for row in rows if row.get("is_corrected")
        }

        category_stats: Dict[str, Dict[str, int]] = {}
        for group in group_issues(rows):
            is_corrected = group.identity in corrected_keys
            for issue_type in split_issue_types(group.issue_type):
                stats = category_stats.setdefault(issue_type, {"total": 0, "corrected": 0, "remaining": 0})
                stats["total"] += 1
                stats["corrected" if is_corrected else "remaining"] += 1

        totals = {
            key: sum(stats[key] for stats in category_stats.values())
            for key in ("total", "corrected", "remaining")
        }
        categories = list(category_stats.keys())[:MAX_CATEGORY_CARDS]
        return {
            "totals": totals,
            "categories": [{"category": name, **category_stats[name]} for name in categories],
        }

    async def upload_history(self) -> List[Dict[str, Any]]:
        """Reports, newest upload first"""
        return await self._rows(
            self.db.table("reports")
            .select("id, file_name, uploaded_at, total_issues")
            .order("uploaded_at", ascending=False)
        )
