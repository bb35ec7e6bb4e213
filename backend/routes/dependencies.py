"""
Shared route dependencies
"""
from fastapi import Depends, Request

from query_client import DatabaseClient, InProcessTransport
from services.statement_executor import StatementExecutor


def get_executor(request: Request) -> StatementExecutor:
    """Executor bound to the application's store pool"""
    return StatementExecutor(request.app.state.store_pool)


def get_db(executor: StatementExecutor = Depends(get_executor)) -> DatabaseClient:
    """Query façade wired straight to the executor of this process"""
    return DatabaseClient(InProcessTransport(executor))
