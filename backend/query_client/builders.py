"""
Chainable query builders

Every chain method returns a new builder, so a partially configured query
can be reused as a base for several variants:

    base = db.table("issues").select("*").eq("is_corrected", False)
    page = await base.order("created_at", ascending=False).range(0, 9).execute()
    owned = await base.eq("owner", "ACN").execute()

Nothing is sent until ``execute()`` is awaited.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union
import logging

from pydantic import ValidationError as PydanticValidationError

from errors import QATrackerError, TransportError, ValidationError
from models.conditions import Condition, InCondition, OrGroup
from models.requests import DeleteRequest, InsertRequest, SelectRequest, StoreRequest, UpdateRequest
from query_client.response import DBResponse
from query_client.transport import Transport

logger = logging.getLogger(__name__)


async def _send(transport: Transport, path: str, build: Callable[[], StoreRequest]) -> DBResponse:
    """
    Build and run one request; every failure, including an invalid request
    built from the chain, comes back as ``DBResponse(error=...)``
    """
    try:
        payload = build().to_wire()
        body = await transport.post(path, payload)
    except QATrackerError as e:
        logger.error(f"{path} failed: {e}")
        return DBResponse(data=None, error=e)
    except PydanticValidationError as e:
        logger.error(f"{path} rejected before sending: {e}")
        return DBResponse(data=None, error=ValidationError(str(e)))
    except Exception as e:
        logger.error(f"{path} failed unexpectedly: {e}", exc_info=True)
        return DBResponse(data=None, error=TransportError(str(e)))

    return DBResponse(data=body.get("data"), error=None, count=body.get("count"))


@dataclass(frozen=True)
class _FilterMixin:
    """Comparison filters shared by select/update/delete builders"""
    where: Tuple[Condition, ...] = ()

    def _where(self, field_name: str, operator: str, value: Any):
        return replace(self, where=self.where + (Condition(field=field_name, operator=operator, value=value),))

    def eq(self, field_name: str, value: Any):
        """``field = value``; ``None`` compiles to ``IS NULL``"""
        return self._where(field_name, "=", value)

    def neq(self, field_name: str, value: Any):
        return self._where(field_name, "!=", value)

    def gt(self, field_name: str, value: Any):
        return self._where(field_name, ">", value)

    def gte(self, field_name: str, value: Any):
        return self._where(field_name, ">=", value)

    def lt(self, field_name: str, value: Any):
        return self._where(field_name, "<", value)

    def lte(self, field_name: str, value: Any):
        return self._where(field_name, "<=", value)

    def like(self, field_name: str, pattern: str):
        return self._where(field_name, "LIKE", pattern)

    def ilike(self, field_name: str, pattern: str):
        # Case-insensitive through the store collation
        return self._where(field_name, "LIKE", pattern)


@dataclass(frozen=True)
class SelectQuery(_FilterMixin):
    table: str = ""
    transport: Optional[Transport] = field(default=None, compare=False, repr=False)
    fields: str = "*"
    or_groups: Tuple[Union[OrGroup, str], ...] = ()
    in_conditions: Tuple[InCondition, ...] = ()
    order_by: Optional[str] = None
    ascending: bool = True
    limit_value: Optional[int] = None
    offset_value: int = 0
    is_single: bool = False

    def select(self, fields: str = "*") -> "SelectQuery":
        return replace(self, fields=fields)

    def in_(self, field_name: str, values: Iterable[Any]) -> "SelectQuery":
        return replace(self, in_conditions=self.in_conditions + (InCondition(field=field_name, values=list(values)),))

    def or_(self, condition: Union[OrGroup, str]) -> "SelectQuery":
        """
        Add an OR group. A ``"field.op.value,..."`` string is kept as is and
        translated when the request is built, so a malformed one comes back
        as the ``execute()`` error.
        """
        return replace(self, or_groups=self.or_groups + (condition,))

    def order(self, field_name: str, ascending: bool = True) -> "SelectQuery":
        return replace(self, order_by=field_name, ascending=ascending)

    def limit(self, count: int) -> "SelectQuery":
        return replace(self, limit_value=count)

    def range(self, start: int, end: int) -> "SelectQuery":
        """Rows ``start`` through ``end`` inclusive (0-based)"""
        return replace(self, offset_value=start, limit_value=end - start + 1)

    def single(self) -> "SelectQuery":
        """Return the first row (or None) instead of a list"""
        return replace(self, is_single=True)

    def to_request(self) -> SelectRequest:
        return SelectRequest(
            table=self.table,
            select_fields=self.fields,
            where=list(self.where),
            or_groups=list(self.or_groups),
            in_conditions=list(self.in_conditions),
            order_by=self.order_by,
            order_direction="asc" if self.ascending else "desc",
            limit=self.limit_value,
            offset=self.offset_value,
            single=self.is_single,
        )

    async def execute(self) -> DBResponse:
        response = await _send(self.transport, "/query", self.to_request)
        if response.ok and response.data is None and not self.is_single:
            response.data = []
        return response


@dataclass(frozen=True)
class InsertQuery:
    table: str = ""
    transport: Optional[Transport] = field(default=None, compare=False, repr=False)
    records: Tuple[Dict[str, Any], ...] = ()

    def to_request(self) -> InsertRequest:
        return InsertRequest(table=self.table, records=list(self.records))

    async def execute(self) -> DBResponse:
        return await _send(self.transport, "/insert", self.to_request)


@dataclass(frozen=True)
class UpdateQuery(_FilterMixin):
    table: str = ""
    transport: Optional[Transport] = field(default=None, compare=False, repr=False)
    values: Tuple[Tuple[str, Any], ...] = ()
    in_conditions: Tuple[InCondition, ...] = ()

    def in_(self, field_name: str, values: Iterable[Any]) -> "UpdateQuery":
        return replace(self, in_conditions=self.in_conditions + (InCondition(field=field_name, values=list(values)),))

    def to_request(self) -> UpdateRequest:
        return UpdateRequest(
            table=self.table,
            updates=dict(self.values),
            where=list(self.where),
            in_conditions=list(self.in_conditions),
        )

    async def execute(self) -> DBResponse:
        return await _send(self.transport, "/update", self.to_request)


@dataclass(frozen=True)
class DeleteQuery(_FilterMixin):
    table: str = ""
    transport: Optional[Transport] = field(default=None, compare=False, repr=False)

    def to_request(self) -> DeleteRequest:
        return DeleteRequest(table=self.table, where=list(self.where))

    async def execute(self) -> DBResponse:
        return await _send(self.transport, "/delete", self.to_request)


class TableRef:
    """Entry point for one table: ``db.table("issues").select(...)``"""

    def __init__(self, name: str, transport: Transport):
        self.name = name
        self.transport = transport

    def select(self, fields: str = "*") -> SelectQuery:
        return SelectQuery(table=self.name, transport=self.transport, fields=fields)

    def insert(self, records: Union[Dict[str, Any], List[Dict[str, Any]]]) -> InsertQuery:
        """Accepts one record or a list; always sent as a list"""
        if isinstance(records, dict):
            records = [records]
        return InsertQuery(table=self.name, transport=self.transport, records=tuple(records))

    def update(self, values: Dict[str, Any]) -> UpdateQuery:
        return UpdateQuery(table=self.name, transport=self.transport, values=tuple(values.items()))

    def delete(self) -> DeleteQuery:
        return DeleteQuery(table=self.name, transport=self.transport)


class DatabaseClient:
    """Façade over the store API, bound to one transport"""

    def __init__(self, transport: Transport):
        self.transport = transport

    def table(self, name: str) -> TableRef:
        return TableRef(name, self.transport)
