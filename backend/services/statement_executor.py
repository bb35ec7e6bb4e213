"""
Statement Executor
Runs compiled statements against the store pool and shapes the responses
"""
import logging
import uuid
from typing import Any, Dict, List

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from database import StorePool
from errors import StoreError, ValidationError
from models.requests import DeleteRequest, InsertRequest, SelectRequest, UpdateRequest
from services.statement_compiler import (
    CompiledStatement,
    compile_count,
    compile_delete,
    compile_fetch_by_id,
    compile_insert,
    compile_select,
    compile_update,
)

logger = logging.getLogger(__name__)


def _store_error(error: SQLAlchemyError) -> StoreError:
    """Wrap a driver failure, keeping the store's own message"""
    if isinstance(error, PoolTimeoutError):
        return StoreError(f"Connection pool exhausted: {error}")
    if isinstance(error, DBAPIError) and error.orig is not None:
        return StoreError(str(error.orig))
    return StoreError(str(error))


class StatementExecutor:
    """Execute SELECT / INSERT / UPDATE / DELETE requests"""

    def __init__(self, pool: StorePool):
        self.pool = pool

    async def _run(self, connection, statement: CompiledStatement):
        logger.info(f"Executing query: {statement.sql}")
        logger.info(f"With params: {statement.params}")
        return await connection.execute(text(statement.sql), statement.params)

    async def select(self, request: SelectRequest) -> Dict[str, Any]:
        """
        Returns:
            ``{"data": rows | row | None, "count": total}`` where ``count`` is
            the number of matching rows regardless of limit/offset
        """
        statement = compile_select(request)
        count_statement = compile_count(request)

        try:
            async with self.pool.acquire() as connection:
                result = await self._run(connection, statement)
                rows = [dict(row) for row in result.mappings().all()]

                count_result = await self._run(connection, count_statement)
                total_count = count_result.scalar_one()
        except SQLAlchemyError as e:
            logger.error(f"Query error: {e}")
            raise _store_error(e) from e

        return {
            "data": (rows[0] if rows else None) if request.single else rows,
            "count": total_count,
        }

    async def insert(self, request: InsertRequest) -> Dict[str, Any]:
        """
        Insert all records in one transaction and return them as stored.

        Records without an ``id`` get a uuid4 string id, the key type of every
        table in the store.

        Raises:
            ValidationError: ``records`` is empty
            StoreError: any row failed; nothing from the batch is kept
        """
        if not request.records:
            raise ValidationError("Records must be a non-empty array")

        inserted_records: List[Dict[str, Any]] = []
        try:
            async with self.pool.transaction() as connection:
                for record in request.records:
                    if record.get("id") is None:
                        record = {**record, "id": str(uuid.uuid4())}
                    await self._run(connection, compile_insert(request.table, record))

                    fetched = await self._run(connection, compile_fetch_by_id(request.table, record["id"]))
                    row = fetched.mappings().first()
                    inserted_records.append(dict(row) if row is not None else None)
        except SQLAlchemyError as e:
            logger.error(f"Insert error, batch rolled back: {e}")
            raise _store_error(e) from e

        logger.info(f"Inserted {len(inserted_records)} rows into {request.table}")
        return {"data": inserted_records, "count": len(inserted_records)}

    async def update(self, request: UpdateRequest) -> Dict[str, Any]:
        statement = compile_update(request)
        try:
            async with self.pool.acquire() as connection:
                result = await self._run(connection, statement)
        except SQLAlchemyError as e:
            logger.error(f"Update error: {e}")
            raise _store_error(e) from e

        return {"data": {"affectedRows": result.rowcount}, "count": result.rowcount}

    async def delete(self, request: DeleteRequest) -> Dict[str, Any]:
        statement = compile_delete(request)
        try:
            async with self.pool.acquire() as connection:
                result = await self._run(connection, statement)
        except SQLAlchemyError as e:
            logger.error(f"Delete error: {e}")
            raise _store_error(e) from e

        return {"data": {"affectedRows": result.rowcount}, "count": result.rowcount}
