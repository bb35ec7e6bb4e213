"""
Statement Compiler
Turns declarative store requests into parameterized SQL

Identifiers (table and column names) come from application code and are
interpolated as-is. Every value is sent as a bound parameter.
"""
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from errors import ValidationError
from models.conditions import Condition, InCondition, OrGroup
from models.requests import DeleteRequest, SelectRequest, UpdateRequest

ISO_DATETIME_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d{3})?Z?$")


@dataclass
class CompiledStatement:
    """SQL text with named ``:pN`` placeholders and their values"""
    sql: str
    params: Dict[str, Any] = field(default_factory=dict)


class _Params:
    """Allocates placeholder names for one statement"""

    def __init__(self, prefix: str = "p"):
        self.prefix = prefix
        self.values: Dict[str, Any] = {}

    def bind(self, value: Any) -> str:
        name = f"{self.prefix}{len(self.values)}"
        self.values[name] = value
        return f":{name}"


def to_store_datetime(value: Any) -> Any:
    """
    Convert an ISO-8601 string to the store's ``YYYY-MM-DD HH:MM:SS`` form.

    Fractional seconds and the ``Z`` marker are dropped; any other value is
    returned unchanged.
    """
    if isinstance(value, str) and ISO_DATETIME_PATTERN.match(value):
        return value[:19].replace("T", " ")
    return value


def prepare_record(record: Dict[str, Any]) -> Dict[str, Any]:
    return {key: to_store_datetime(value) for key, value in record.items()}


def build_where_clause(
    conditions: Sequence[Condition],
    or_groups: Sequence[OrGroup],
    in_conditions: Sequence[InCondition],
    params: _Params,
) -> str:
    """
    Build ``WHERE ...`` (or an empty string) from all filter kinds.

    Everything is AND-ed at the top level. ``= NULL`` / ``!= NULL`` become
    ``IS NULL`` / ``IS NOT NULL``; an empty IN list matches nothing.
    """
    where_parts: List[str] = []

    for condition in conditions:
        if condition.value is None and condition.operator == "=":
            where_parts.append(f"{condition.field} IS NULL")
        elif condition.value is None and condition.operator == "!=":
            where_parts.append(f"{condition.field} IS NOT NULL")
        else:
            where_parts.append(f"{condition.field} {condition.operator} {params.bind(condition.value)}")

    for in_condition in in_conditions:
        if not in_condition.values:
            where_parts.append("1 = 0")
            continue
        placeholders = ", ".join(params.bind(value) for value in in_condition.values)
        where_parts.append(f"{in_condition.field} IN ({placeholders})")

    # OR groups are AND-ed with every other filter, other OR groups included
    for group in or_groups:
        alternatives = []
        for clause in group.clauses:
            # ilike relies on the store's case-insensitive collation
            operator = "LIKE" if clause.operator == "ilike" else "="
            alternatives.append(f"{clause.field} {operator} {params.bind(clause.value)}")
        if alternatives:
            where_parts.append(f"({' OR '.join(alternatives)})")

    if not where_parts:
        return ""
    return "WHERE " + " AND ".join(where_parts)


def _join(*parts: Optional[str]) -> str:
    return " ".join(part for part in parts if part)


def compile_select(request: SelectRequest) -> CompiledStatement:
    params = _Params()
    where_clause = build_where_clause(request.where, request.or_groups, request.in_conditions, params)

    order_clause = None
    if request.order_by:
        order_clause = f"ORDER BY {request.order_by} {request.order_direction.upper()}"

    limit_clause = None
    # limit 0 means unbounded
    if request.limit:
        limit_clause = f"LIMIT {params.bind(request.limit)} OFFSET {params.bind(request.offset)}"

    sql = _join(
        f"SELECT {request.select_fields or '*'}",
        f"FROM {request.table}",
        where_clause,
        order_clause,
        limit_clause,
    )
    return CompiledStatement(sql, params.values)


def compile_count(request: SelectRequest) -> CompiledStatement:
    """``COUNT(*)`` over the same filters, ignoring order and pagination"""
    params = _Params()
    where_clause = build_where_clause(request.where, request.or_groups, request.in_conditions, params)
    sql = _join(f"SELECT COUNT(*) AS count FROM {request.table}", where_clause)
    return CompiledStatement(sql, params.values)


def compile_insert(table: str, record: Dict[str, Any]) -> CompiledStatement:
    params = _Params()
    prepared = prepare_record(record)
    fields = list(prepared.keys())
    placeholders = ", ".join(params.bind(prepared[name]) for name in fields)
    sql = f"INSERT INTO {table} ({', '.join(fields)}) VALUES ({placeholders})"
    return CompiledStatement(sql, params.values)


def compile_fetch_by_id(table: str, row_id: Any) -> CompiledStatement:
    return CompiledStatement(f"SELECT * FROM {table} WHERE id = :id", {"id": row_id})


def compile_update(request: UpdateRequest) -> CompiledStatement:
    """
    Raises:
        ValidationError: no SET fields, or no WHERE/IN filter at all
    """
    if not request.updates:
        raise ValidationError("At least one field is required for UPDATE")

    params = _Params()
    prepared = prepare_record(request.updates)
    set_clause = ", ".join(f"{name} = {params.bind(value)}" for name, value in prepared.items())

    where_clause = build_where_clause(request.where, [], request.in_conditions, params)
    if not where_clause:
        raise ValidationError("WHERE clause is required for UPDATE")

    return CompiledStatement(_join(f"UPDATE {request.table}", f"SET {set_clause}", where_clause), params.values)


def compile_delete(request: DeleteRequest) -> CompiledStatement:
    """
    Raises:
        ValidationError: no WHERE filter
    """
    params = _Params()
    where_clause = build_where_clause(request.where, [], [], params)
    if not where_clause:
        raise ValidationError("WHERE clause is required for DELETE")

    return CompiledStatement(_join(f"DELETE FROM {request.table}", where_clause), params.values)
