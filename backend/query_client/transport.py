"""
Transports carrying façade requests to the statement compiler
"""
from typing import Any, Dict, Optional, Protocol
import logging

import httpx
from pydantic import ValidationError as PydanticValidationError

from errors import StoreError, TransportError, ValidationError
from models.requests import DeleteRequest, InsertRequest, SelectRequest, UpdateRequest
from services.statement_executor import StatementExecutor

logger = logging.getLogger(__name__)


class Transport(Protocol):
    async def post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        ...


class HttpTransport:
    """
    POST requests to the store API over HTTP.

    Args:
        base_url: API root, e.g. ``http://localhost:3001/api``
        timeout: Fixed per-request timeout in seconds
        client: Optional pre-built ``httpx.AsyncClient`` (tests, connection reuse)
    """

    def __init__(self, base_url: str, timeout: float = 30.0, client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url
        self.timeout = timeout
        self._client = client

    async def post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            if self._client is not None:
                response = await self._client.post(path, json=payload, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout) as client:
                    response = await client.post(path, json=payload)
        except httpx.TimeoutException as e:
            raise TransportError(f"Request to {path} timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {path} failed: {e}") from e

        if response.status_code >= 400:
            message = _error_message(response)
            if response.status_code == 400:
                raise ValidationError(message)
            raise StoreError(message)

        return response.json()


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"HTTP {response.status_code}"


class InProcessTransport:
    """Call the statement executor directly when façade and compiler share a process"""

    def __init__(self, executor: StatementExecutor):
        self.executor = executor

    async def post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            if path == "/query":
                return await self.executor.select(SelectRequest.model_validate(payload))
            if path == "/insert":
                return await self.executor.insert(InsertRequest.model_validate(payload))
            if path == "/update":
                return await self.executor.update(UpdateRequest.model_validate(payload))
            if path == "/delete":
                return await self.executor.delete(DeleteRequest.model_validate(payload))
        except PydanticValidationError as e:
            raise ValidationError(str(e)) from e

        raise TransportError(f"Unknown store path: {path}")
