"""
Dedup / Grouping Engine

Collapses raw rows sharing a natural identity into one entity per key:

- ingestion time: spreadsheet rows of one sheet, keyed by (part number, owner),
  first occurrence wins;
- presentation time: stored issue rows, keyed by Part Identity
  (part_number, owner), with issue types merged and timestamps reduced.

Owner absence is represented by ``None`` inside the key tuple, so a literal
owner string such as ``"null"`` never shares a bucket with a missing owner.
"""
from dataclasses import dataclass, field
from datetime import datetime
from math import ceil
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

PART_NUMBER_COLUMN = "Part Number"
OWNER_COLUMN = "Owner"
ISSUE_TYPE_SEPARATOR = ", "

PartIdentity = Tuple[str, Optional[str]]


def cell_text(value: Any) -> Optional[str]:
    """Spreadsheet cell as text; empty cells become None"""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value)
    return text if text.strip() else None


def part_identity(part_number: str, owner: Optional[str]) -> PartIdentity:
    return (part_number, owner)


# ============================================
# INGESTION-TIME ROW DEDUP
# ============================================

@dataclass
class SheetRow:
    """A retained spreadsheet row"""
    part_number: str
    owner: Optional[str] = None

    @property
    def identity(self) -> PartIdentity:
        return part_identity(self.part_number, self.owner)


def dedupe_sheet_rows(rows: Iterable[Mapping[str, Any]]) -> List[SheetRow]:
    """
    Keep the first row of every (part number, owner) key, in file order.

    Rows without a part number are dropped before keying.
    """
    seen = set()
    unique_rows: List[SheetRow] = []

    for row in rows:
        part_number = cell_text(row.get(PART_NUMBER_COLUMN))
        if part_number is None:
            continue

        sheet_row = SheetRow(part_number=part_number, owner=cell_text(row.get(OWNER_COLUMN)))
        if sheet_row.identity in seen:
            continue

        seen.add(sheet_row.identity)
        unique_rows.append(sheet_row)

    return unique_rows


def build_issue_records(
    sheet_name: str,
    rows: Iterable[SheetRow],
    report_id: str,
    created_at: str,
    id_factory=None,
) -> List[Dict[str, Any]]:
    """Issue insert payloads for the retained rows of one sheet"""
    records = []
    for row in rows:
        record = {
            "part_number": row.part_number,
            "owner": row.owner,
            "issue_type": sheet_name,
            "report_id": report_id,
            "created_at": created_at,
        }
        if id_factory is not None:
            record = {"id": id_factory(), **record}
        records.append(record)
    return records


# ============================================
# PRESENTATION-TIME GROUPING
# ============================================

def split_issue_types(issue_type: Optional[str]) -> List[str]:
    if not issue_type:
        return []
    return [token.strip() for token in str(issue_type).split(",") if token.strip()]


def merge_issue_types(existing: Optional[str], incoming: Optional[str]) -> str:
    """
    Append the labels of ``incoming`` that ``existing`` does not have yet.

    Both sides are re-split first, so merging already-merged values never
    duplicates a label.
    """
    tokens = split_issue_types(existing)
    for token in split_issue_types(incoming):
        if token not in tokens:
            tokens.append(token)
    return ISSUE_TYPE_SEPARATOR.join(tokens)


def as_datetime(value: Any) -> Optional[datetime]:
    """Parse store/ISO timestamps for ordering; None when absent or unparseable"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1]
    try:
        return datetime.fromisoformat(text.replace(" ", "T")).replace(tzinfo=None)
    except ValueError:
        return None


def _earliest(existing: Any, incoming: Any) -> Any:
    existing_at, incoming_at = as_datetime(existing), as_datetime(incoming)
    if existing_at is None:
        return incoming
    if incoming_at is not None and incoming_at < existing_at:
        return incoming
    return existing


def _latest_when_both(existing: Any, incoming: Any) -> Any:
    existing_at, incoming_at = as_datetime(existing), as_datetime(incoming)
    if existing_at is None or incoming_at is None:
        return existing
    return incoming if incoming_at > existing_at else existing


@dataclass
class GroupedIssue:
    """All issue rows of one Part Identity merged into one entity"""
    part_number: str
    owner: Optional[str]
    issue_type: str
    id: Any = None
    report_id: Any = None
    created_at: Any = None
    is_corrected: bool = False
    corrected_at: Any = None

    @property
    def identity(self) -> PartIdentity:
        return part_identity(self.part_number, self.owner)

    @property
    def issue_types(self) -> List[str]:
        return split_issue_types(self.issue_type)

    @property
    def status(self) -> str:
        return "corrected" if self.is_corrected else "open"

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "GroupedIssue":
        return cls(
            part_number=str(row["part_number"]),
            owner=row.get("owner"),
            issue_type=merge_issue_types(None, row.get("issue_type")),
            id=row.get("id"),
            report_id=row.get("report_id"),
            created_at=row.get("created_at"),
            is_corrected=bool(row.get("is_corrected")),
            corrected_at=row.get("corrected_at"),
        )

    def merge(self, row: Mapping[str, Any]) -> None:
        self.issue_type = merge_issue_types(self.issue_type, row.get("issue_type"))
        self.created_at = _earliest(self.created_at, row.get("created_at"))
        self.corrected_at = _latest_when_both(self.corrected_at, row.get("corrected_at"))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "part_number": self.part_number,
            "owner": self.owner,
            "issue_type": self.issue_type,
            "issue_types": self.issue_types,
            "report_id": self.report_id,
            "created_at": self.created_at,
            "is_corrected": self.is_corrected,
            "corrected_at": self.corrected_at,
            "status": self.status,
        }


def group_issues(
    rows: Iterable[Mapping[str, Any]],
    corrected: Optional[bool] = None,
) -> List[GroupedIssue]:
    """
    Merge issue rows by Part Identity, in order of first appearance.

    Args:
        rows: Raw issue rows (or already grouped dicts)
        corrected: Keep only rows with this correction state; None keeps all
    """
    groups: Dict[PartIdentity, GroupedIssue] = {}

    for row in rows:
        if corrected is not None and bool(row.get("is_corrected")) != corrected:
            continue

        key = part_identity(str(row["part_number"]), row.get("owner"))
        if key not in groups:
            groups[key] = GroupedIssue.from_row(row)
        else:
            groups[key].merge(row)

    return list(groups.values())


def category_options(groups: Iterable[GroupedIssue]) -> List[str]:
    """Sorted union of all issue type labels"""
    options = set()
    for group in groups:
        options.update(group.issue_types)
    return sorted(options)


def filter_by_category(groups: Iterable[GroupedIssue], category: Optional[str]) -> List[GroupedIssue]:
    if not category:
        return list(groups)
    return [group for group in groups if category in group.issue_types]


@dataclass
class Page:
    items: List[GroupedIssue] = field(default_factory=list)
    total: int = 0
    page: int = 1
    per_page: int = 10

    @property
    def total_pages(self) -> int:
        return ceil(self.total / self.per_page) if self.per_page else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "total": self.total,
            "page": self.page,
            "per_page": self.per_page,
            "total_pages": self.total_pages,
        }


def paginate(groups: List[GroupedIssue], page: int, per_page: int) -> Page:
    """Slice grouped entities; ``total`` counts Part Identities, not raw rows"""
    page = max(page, 1)
    start = (page - 1) * per_page
    return Page(items=groups[start:start + per_page], total=len(groups), page=page, per_page=per_page)
