"""Knowledge search service client."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

import httpx
import structlog

from ..exceptions import SearchError

logger = structlog.get_logger()


@dataclass
class KnowledgeDocument:
    """A scored document returned by the search service."""

    id: str
    score: float
    content: Dict[str, Any] = field(default_factory=dict)
    source_partition: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def text(self) -> str:
        return str(self.content.get("text") or self.content.get("content") or "")

    @property
    def category(self) -> str:
        return str(
            self.content.get("category") or self.metadata.get("category") or "General"
        )

    @property
    def title(self) -> str:
        return str(self.content.get("title") or self.metadata.get("title") or "")


class SearchService(Protocol):
    """Protocol for the partitioned search collaborator.

    Must return an empty list for a partition with no hits and be safe to
    call concurrently for distinct partitions.
    """

    async def search(
        self,
        partition: str,
        query: str,
        limit: int = 5,
        filter: Optional[str] = None,
    ) -> List[KnowledgeDocument]:
        ...


def _score(value: Any) -> float:
    try:
        return min(max(float(value), 0.0), 1.0)
    except (TypeError, ValueError):
        return 0.0


class HttpSearchClient:
    """REST search client (``POST {base_url}/query``)."""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
        )

    async def search(
        self,
        partition: str,
        query: str,
        limit: int = 5,
        filter: Optional[str] = None,
    ) -> List[KnowledgeDocument]:
        """Query one partition."""
        payload: Dict[str, Any] = {"index": partition, "query": query, "topK": limit}
        if filter:
            payload["filter"] = filter

        try:
            response = await self._client.post("/query", json=payload)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise SearchError(partition, str(exc)) from exc

        documents = []
        for item in data.get("results") or []:
            if not isinstance(item, dict) or "id" not in item:
                continue
            documents.append(
                KnowledgeDocument(
                    id=str(item["id"]),
                    score=_score(item.get("score", 0.0)),
                    content=item.get("content") or item.get("data") or {},
                    source_partition=partition,
                    metadata=item.get("metadata") or {},
                )
            )
        return documents

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
