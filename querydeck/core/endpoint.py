"""
Query Endpoint Client

Talks to the remote database endpoint of the reporting dashboard:
table listing, column listing and raw SQL execution. Every failure is
raised as an EndpointError so callers never see transport-specific
exception types.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union
import logging
import re

import httpx

from querydeck.config import EndpointConfig, KeyStyle
from querydeck.core.exceptions import AuthenticationError, EndpointError

logger = logging.getLogger(__name__)

# Raw response of the execution endpoint: rows, or {"affectedRows": n}
QueryResponse = Union[List[Dict[str, Any]], Dict[str, Any]]


class QueryEndpoint(ABC):
    """Base class for anything that can list tables and execute SQL."""

    @abstractmethod
    async def get_tables(self) -> List[str]:
        """Get the list of table names."""
        pass

    @abstractmethod
    async def get_columns(self, table_name: str) -> List[str]:
        """Get the column names of a table."""
        pass

    @abstractmethod
    async def execute(self, sql: str) -> QueryResponse:
        """Execute a statement and return rows or an affected-row count."""
        pass

    async def close(self):
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


_SNAKE_PATTERN = re.compile(r"_([a-z])")


def camel_case_key(key: str) -> str:
    """Convert a PascalCase or snake_case key to camelCase."""
    if not key:
        return key
    key = key[0].lower() + key[1:]
    return _SNAKE_PATTERN.sub(lambda m: m.group(1).upper(), key)


def to_camel_case(obj: Any) -> Any:
    """Recursively convert mapping keys to camelCase."""
    if isinstance(obj, list):
        return [to_camel_case(item) for item in obj]
    if isinstance(obj, dict):
        return {camel_case_key(str(k)): to_camel_case(v) for k, v in obj.items()}
    return obj


def _error_message(response: httpx.Response) -> str:
    """Extract the most useful error message from a failed response."""
    text = response.text
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    if text:
        return text
    return f"HTTP error! status: {response.status_code}"


class QueryEndpointClient(QueryEndpoint):
    """
    HTTP client for the dashboard's database endpoint.

    Routes (relative to ``base_url``):
    - ``GET database/tables``
    - ``GET database/columns/{table}``
    - ``POST database/query`` with body ``{"sql": ...}``
    """

    def __init__(
        self,
        config: EndpointConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            config: Endpoint configuration
            transport: Optional httpx transport (used to plug in mock transports)
        """
        self.config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the underlying HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                headers=self._headers(),
                timeout=self.config.timeout,
                transport=self._transport,
            )
        return self._client

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.token:
            headers["Authorization"] = f"Bearer {self.config.token}"
        return headers

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"API [{method}] transport error: {path} -> {e}")
            raise EndpointError(str(e) or f"Could not reach {self.config.base_url}") from e

        if response.status_code == 401:
            logger.warning(f"API [{method}] unauthorized: {path}")
            raise AuthenticationError("Unauthorized", status_code=401)

        if response.is_error:
            message = _error_message(response)
            logger.error(f"API [{method}] error: {path} -> {response.status_code} - {message}")
            raise EndpointError(message, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise EndpointError(f"Invalid JSON from {path}", status_code=response.status_code) from e

        if self.config.key_style == KeyStyle.CAMEL:
            data = to_camel_case(data)
        return data

    async def get_tables(self) -> List[str]:
        data = await self._request("GET", "/database/tables")
        if not isinstance(data, list):
            raise EndpointError("Table listing is not a list")
        return [str(name) for name in data]

    async def get_columns(self, table_name: str) -> List[str]:
        data = await self._request("GET", f"/database/columns/{table_name}")
        if not isinstance(data, list):
            raise EndpointError(f"Column listing for {table_name} is not a list")
        return [str(name) for name in data]

    async def execute(self, sql: str) -> QueryResponse:
        return await self._request("POST", "/database/query", json={"sql": sql})

    async def close(self):
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Endpoint client closed")
