"""Elasticsearch REST connector used as the document store.

Talks plain HTTP through httpx: create index, read mapping, paged and
custom searches, bulk indexing. Any non-success status is raised as
BackendStatusError with the status code and response body.
"""
import json
from typing import Any, Dict, Mapping, Optional

import httpx
import structlog

from esrag import config
from esrag.errors import BackendStatusError, ConfigurationError, ResponseParseError

logger = structlog.get_logger()


class ElasticsearchConnector:
    """Async Elasticsearch client authenticated with an API key."""

    def __init__(
        self,
        base_url: str = None,
        api_key: str = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the connector.

        Args:
            base_url: Elasticsearch URL (defaults to config.ES_URL)
            api_key: Encoded API key (defaults to config.ES_APIKEY)
            timeout: Request timeout in seconds (defaults to config.HTTP_TIMEOUT)
            transport: Optional httpx transport, mainly for tests

        Raises:
            ConfigurationError: If the URL or API key is not configured
        """
        base_url = base_url or config.ES_URL
        if not base_url:
            raise ConfigurationError("ES_URL")

        self.api_key = api_key or config.ES_APIKEY
        if not self.api_key:
            raise ConfigurationError("ES_APIKEY")

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout or config.HTTP_TIMEOUT
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            headers={"Authorization": f"ApiKey {self.api_key}"},
        )

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            async with self._client() as client:
                response = await client.request(method, f"{self.base_url}{path}", **kwargs)
        except httpx.HTTPError as e:
            logger.error(
                "elasticsearch_connection_error",
                operation=operation,
                error=str(e),
                base_url=self.base_url,
            )
            raise

        if not response.is_success:
            logger.error(
                "elasticsearch_request_failed",
                operation=operation,
                status_code=response.status_code,
                response_preview=response.text[:500],
            )
            raise BackendStatusError(operation, response.status_code, response.text)

        return response

    @staticmethod
    def _json(response: httpx.Response, operation: str) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise ResponseParseError(
                f"Failed to decode {operation} response: {e}",
                details={"operation": operation},
            ) from e

        if not isinstance(data, dict):
            raise ResponseParseError(
                f"Unexpected {operation} response type: {type(data).__name__}",
                details={"operation": operation},
            )
        return data

    async def create_index(self, index_name: str, mapping: Mapping[str, Any]) -> None:
        """Create an index with the given mapping.

        Raises:
            BackendStatusError: If the index exists or creation is rejected
        """
        await self._request("create index", "PUT", f"/{index_name}", json=dict(mapping))
        logger.info("index_created", index=index_name)

    async def get_index_mapping(self, index_name: str) -> Dict[str, Any]:
        """Fetch the mapping payload of an index (keyed by index name)."""
        response = await self._request("get index mapping", "GET", f"/{index_name}/_mapping")
        return self._json(response, "get index mapping")

    async def search(self, index_name: str, offset: int, size: int) -> Dict[str, Any]:
        """Fetch one page of all documents.

        Args:
            index_name: Index to read
            offset: Number of hits to skip
            size: Page size

        Returns:
            Raw search response
        """
        query = {
            "query": {"match_all": {}},
            "from": offset,
            "size": size,
        }
        return await self.search_with_custom_query(index_name, query)

    async def search_with_custom_query(
        self, index_name: str, query: Mapping[str, Any]
    ) -> Dict[str, Any]:
        """Run an arbitrary search request body against an index."""
        response = await self._request(
            "search documents", "POST", f"/{index_name}/_search", json=dict(query)
        )
        return self._json(response, "search documents")

    async def bulk_index(
        self, index_name: str, documents: Mapping[str, Mapping[str, Any]]
    ) -> Dict[str, Any]:
        """Index documents in one _bulk request, keyed by document id.

        Existing documents with the same id are overwritten.

        Args:
            index_name: Target index
            documents: Document id to source, in submission order

        Returns:
            Raw bulk response
        """
        if not documents:
            return {"took": 0, "errors": False, "items": []}

        lines = []
        for doc_id, source in documents.items():
            lines.append(json.dumps({"index": {"_index": index_name, "_id": str(doc_id)}}))
            lines.append(json.dumps(source))
        body = "\n".join(lines) + "\n"

        response = await self._request(
            "index documents",
            "POST",
            "/_bulk",
            content=body.encode("utf-8"),
            headers={"Content-Type": "application/x-ndjson"},
        )
        result = self._json(response, "index documents")

        if result.get("errors"):
            failed = [
                item for item in result.get("items", [])
                if next(iter(item.values()), {}).get("error")
            ]
            logger.warning(
                "bulk_index_item_errors",
                index=index_name,
                failed_count=len(failed),
                submitted=len(documents),
            )

        return result

    async def ping(self) -> bool:
        """Return True when the cluster answers the root endpoint."""
        try:
            await self._request("ping", "GET", "/")
            return True
        except (httpx.HTTPError, BackendStatusError):
            return False
