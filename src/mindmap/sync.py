"""Pull-based graph sync.

Copies whitelisted graphs from an upstream graph server into the mindmap
server:

1. List upstream graphs (`GET /v1/graphs`)
2. Keep ids that pass the include/exclude prefix rules
3. For each, fetch the full graph (`GET /v1/graph?id=`) and post it to
   `/api/sync` on the mindmap server, which replaces the stored copy

A failure on one graph is logged and counted; the remaining graphs are
still synced.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

import httpx

from mindmap.config import settings

logger = logging.getLogger(__name__)


def should_sync(
    graph_id: str,
    include: Iterable[str] | None = None,
    exclude: Iterable[str] | None = None,
) -> bool:
    """Exclusion prefixes win over inclusion prefixes."""
    include = settings.sync_include_prefixes if include is None else include
    exclude = settings.sync_exclude_prefixes if exclude is None else exclude
    if any(graph_id.startswith(prefix) for prefix in exclude):
        return False
    return any(graph_id.startswith(prefix) for prefix in include)


def extract_graph_ids(listing: Any) -> list[str]:
    """Graph ids from an upstream listing: a list, or `{graphs: [...]}`.

    Entries are either plain ids or objects carrying `id` (or `name`).
    """
    entries = listing if isinstance(listing, list) else (listing or {}).get("graphs") or []
    ids = []
    for entry in entries:
        graph_id = entry if isinstance(entry, str) else (entry.get("id") or entry.get("name"))
        if graph_id:
            ids.append(str(graph_id))
    return ids


@dataclass
class SyncReport:
    """Outcome of one sync run."""

    total: int = 0
    selected: list[str] = field(default_factory=list)
    synced: dict[str, dict] = field(default_factory=dict)  # graph id -> server reply
    failed: dict[str, str] = field(default_factory=dict)  # graph id -> error

    @property
    def ok(self) -> bool:
        return not self.failed


class GraphSyncError(Exception):
    """The upstream graph list could not be fetched."""


class GraphSyncer:
    """Copies graphs from an upstream server into a mindmap server."""

    def __init__(
        self,
        source_url: str | None = None,
        target_url: str | None = None,
        sync_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        include: list[str] | None = None,
        exclude: list[str] | None = None,
    ) -> None:
        self.source_url = (source_url or settings.sync_source_url).rstrip("/")
        self.target_url = (target_url or settings.api_base_url).rstrip("/")
        self.sync_key = sync_key or settings.sync_key
        self.include = include if include is not None else settings.sync_include_prefixes
        self.exclude = exclude if exclude is not None else settings.sync_exclude_prefixes
        self._client = client

    async def _fetch_json(self, client: httpx.AsyncClient, url: str, **params: Any) -> Any:
        response = await client.get(url, params=params or None)
        response.raise_for_status()
        return response.json()

    async def list_upstream(self, client: httpx.AsyncClient) -> list[str]:
        listing = await self._fetch_json(client, f"{self.source_url}/v1/graphs")
        return extract_graph_ids(listing)

    async def sync_graph(self, client: httpx.AsyncClient, graph_id: str) -> dict:
        """Fetch one upstream graph and push it as a full replace."""
        data = await self._fetch_json(client, f"{self.source_url}/v1/graph", id=graph_id)
        relationships = data.get("relationships")
        if relationships is None:
            relationships = data.get("edges") or []
        payload = {
            "id": graph_id,
            "nodes": data.get("nodes") or [],
            "relationships": relationships,
        }
        response = await client.post(
            f"{self.target_url}/api/sync",
            json=payload,
            headers={"X-Sync-Key": self.sync_key},
        )
        if response.is_error:
            raise httpx.HTTPStatusError(
                f"Sync failed for {graph_id}: HTTP {response.status_code} - {response.text[:200]}",
                request=response.request,
                response=response,
            )
        return response.json()

    async def run(self, progress: Callable[[Iterable[str]], Iterable[str]] | None = None) -> SyncReport:
        """Sync every whitelisted upstream graph.

        Args:
            progress: Optional wrapper around the iteration (e.g. `tqdm`)

        Raises:
            GraphSyncError: if the upstream graph list cannot be fetched
        """
        logger.info(f"Starting sync from {self.source_url} to {self.target_url}")
        client = self._client or httpx.AsyncClient()
        try:
            return await self._run(client, progress)
        finally:
            if self._client is None:
                await client.aclose()

    async def _run(
        self,
        client: httpx.AsyncClient,
        progress: Callable[[Iterable[str]], Iterable[str]] | None,
    ) -> SyncReport:
        try:
            graph_ids = await self.list_upstream(client)
        except (httpx.HTTPError, ValueError) as e:
            raise GraphSyncError(f"Failed to fetch graph list from {self.source_url}: {e}") from e

        report = SyncReport(total=len(graph_ids))
        report.selected = [g for g in graph_ids if should_sync(g, self.include, self.exclude)]
        logger.info(
            f"Found {report.total} graphs, {len(report.selected)} match whitelist"
        )

        selected: Iterable[str] = report.selected
        if progress is not None:
            selected = progress(selected)

        for graph_id in selected:
            try:
                result = await self.sync_graph(client, graph_id)
            except (httpx.HTTPError, ValueError) as e:
                logger.error(f"Failed to sync {graph_id}: {e}")
                report.failed[graph_id] = str(e)
                continue
            report.synced[graph_id] = result
            logger.info(
                f"Synced {graph_id}: {result.get('nodes')} nodes, "
                f"{result.get('relationships')} relationships"
            )

        logger.info(f"Sync complete: {len(report.synced)} synced, {len(report.failed)} failed")
        return report
