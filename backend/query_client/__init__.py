"""
Query Façade

Fluent builders that accumulate filter/sort/pagination intent and send it to
the statement compiler, over HTTP or in-process.
"""
from config import Settings

from .builders import DatabaseClient, TableRef, SelectQuery, InsertQuery, UpdateQuery, DeleteQuery
from .response import DBResponse
from .transport import Transport, HttpTransport, InProcessTransport


def create_http_client(settings: Settings) -> DatabaseClient:
    """Façade talking to a remote store API"""
    return DatabaseClient(HttpTransport(settings.api_base_url, timeout=settings.request_timeout))


__all__ = [
    "DatabaseClient",
    "TableRef",
    "SelectQuery",
    "InsertQuery",
    "UpdateQuery",
    "DeleteQuery",
    "DBResponse",
    "Transport",
    "HttpTransport",
    "InProcessTransport",
    "create_http_client",
]
