"""
Tests unitarios para PaginatedCatalogFetcher.

Usa un upstream falso (httpx.MockTransport) que sirve login y paginas.
"""
from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Sequence

import httpx
import pytest

from catalog_bff.infrastructure.external.upstream_catalog.filter_expression import build_catalog_filter
from catalog_bff.infrastructure.external.upstream_catalog.paginated_fetcher import PaginatedCatalogFetcher
from catalog_bff.infrastructure.external.upstream_catalog.record_transformer import RecordTransformer
from catalog_bff.infrastructure.external.upstream_catalog.session_manager import UpstreamSessionManager
from catalog_bff.infrastructure.external.upstream_catalog.types import UpstreamCredentials
from catalog_bff.infrastructure.external.upstream_catalog.upstream_client import AuthenticatedUpstreamClient
from catalog_bff.shared.exceptions.sync import (
    FilterExpressionError,
    SyncCancelledError,
    UpstreamAuthError,
    UpstreamFetchError,
    UpstreamRejectedError,
)


class FakeUpstream:
    """
    Upstream falso.

    - page_sizes[i]: numero de registros de la pagina i+1 (0 si no existe)
    - page_status: {pagina: [status, status, ...]} respuestas no-200 en orden
    """

    def __init__(
        self,
        page_sizes: Sequence[int],
        *,
        page_status: Optional[Dict[int, List[int]]] = None,
        login_status: int = 200,
        invalid_records: Optional[Dict[int, int]] = None,
    ) -> None:
        self.page_sizes = list(page_sizes)
        self.page_status = {k: list(v) for k, v in (page_status or {}).items()}
        self.login_status = login_status
        self.invalid_records = invalid_records or {}
        self.logins = 0
        self.page_requests: List[httpx.Request] = []
        self.on_page = None

    @property
    def pages_requested(self) -> List[int]:
        return [int(r.url.params["page"]) for r in self.page_requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/autentificar":
            self.logins += 1
            if self.login_status != 200:
                return httpx.Response(self.login_status, json={"error": "nope"})
            return httpx.Response(200, json={"token": f"tok-{self.logins}", "expiresIn": 3600})

        self.page_requests.append(request)
        page = int(request.url.params["page"])
        if self.on_page is not None:
            self.on_page(page)

        statuses = self.page_status.get(page)
        if statuses:
            return httpx.Response(statuses.pop(0), json={"error": "failed"})

        size = self.page_sizes[page - 1] if page <= len(self.page_sizes) else 0
        offset = sum(self.page_sizes[: page - 1])
        records = [
            {"CodigoArticulo": str(100000 + offset + i), "DescripcionArticulo": "FICUS benjamina", "Precio1": 9.5}
            for i in range(size)
        ]
        for i in range(min(self.invalid_records.get(page, 0), size)):
            records[i]["CodigoArticulo"] = "   "
        return httpx.Response(200, json={"$resources": records, "$itemsPerPage": 100})


@pytest.fixture
async def build_fetcher():
    clients: List[httpx.AsyncClient] = []

    def _build(upstream: FakeUpstream, **kwargs) -> PaginatedCatalogFetcher:
        http = httpx.AsyncClient(transport=httpx.MockTransport(upstream), base_url="http://upstream.test")
        clients.append(http)
        sessions = UpstreamSessionManager(UpstreamCredentials("user", "pass"), client=http)
        client = AuthenticatedUpstreamClient(sessions, client=http)
        return PaginatedCatalogFetcher(client, RecordTransformer(), **kwargs)

    yield _build

    for http in clients:
        await http.aclose()


@pytest.mark.asyncio
async def test_stops_on_short_page(build_fetcher) -> None:
    upstream = FakeUpstream([100, 100, 37])
    fetcher = build_fetcher(upstream)

    result = await fetcher.fetch_all()

    assert result.error is None
    assert upstream.pages_requested == [1, 2, 3]
    assert result.pages_fetched == 3
    assert result.raw_fetched == 237
    assert len(result.items) == 237
    assert result.truncated is False


@pytest.mark.asyncio
async def test_full_last_page_triggers_one_more_request(build_fetcher) -> None:
    upstream = FakeUpstream([100, 100])
    fetcher = build_fetcher(upstream)

    result = await fetcher.fetch_all()

    assert upstream.pages_requested == [1, 2, 3]
    assert result.raw_fetched == 200
    assert result.truncated is False


@pytest.mark.asyncio
async def test_safety_ceiling_never_requests_page_26(build_fetcher) -> None:
    upstream = FakeUpstream([100] * 26)
    fetcher = build_fetcher(upstream)

    result = await fetcher.fetch_all()

    assert upstream.pages_requested == list(range(1, 26))
    assert result.pages_fetched == 25
    assert result.raw_fetched == 2500
    assert result.truncated is True
    assert result.error is None


@pytest.mark.asyncio
async def test_sends_query_params_and_token_header(build_fetcher) -> None:
    upstream = FakeUpstream([3])
    fetcher = build_fetcher(upstream)

    await fetcher.fetch_all()

    request = upstream.page_requests[0]
    assert request.url.path == "/adArticulosCatalogo/query"
    assert request.url.params["count"] == "100"
    assert request.url.params["page"] == "1"
    assert request.url.params["where"] == build_catalog_filter(1)
    assert request.headers["x-access-token"] == "tok-1"


@pytest.mark.asyncio
async def test_page_failure_discards_accumulated_records(build_fetcher) -> None:
    upstream = FakeUpstream([100, 100, 50], page_status={2: [500]})
    fetcher = build_fetcher(upstream)

    result = await fetcher.fetch_all()

    assert isinstance(result.error, UpstreamFetchError)
    assert result.items == []
    assert upstream.pages_requested == [1, 2]


@pytest.mark.asyncio
async def test_login_failure_aborts_fetch(build_fetcher) -> None:
    upstream = FakeUpstream([10], login_status=500)
    fetcher = build_fetcher(upstream)

    result = await fetcher.fetch_all()

    assert isinstance(result.error, UpstreamAuthError)
    assert result.items == []
    assert upstream.pages_requested == []


@pytest.mark.asyncio
async def test_rejection_relogs_and_retries_page_once(build_fetcher) -> None:
    upstream = FakeUpstream([100, 20], page_status={2: [401]})
    fetcher = build_fetcher(upstream)

    result = await fetcher.fetch_all()

    assert result.error is None
    assert upstream.logins == 2
    assert upstream.pages_requested == [1, 2, 2]
    assert upstream.page_requests[-1].headers["x-access-token"] == "tok-2"
    assert len(result.items) == 120


@pytest.mark.asyncio
async def test_second_rejection_aborts(build_fetcher) -> None:
    upstream = FakeUpstream([100, 20], page_status={2: [403, 403]})
    fetcher = build_fetcher(upstream)

    result = await fetcher.fetch_all()

    assert isinstance(result.error, UpstreamRejectedError)
    assert result.items == []
    assert upstream.pages_requested == [1, 2, 2]


@pytest.mark.asyncio
async def test_rejection_without_reauth_aborts_immediately(build_fetcher) -> None:
    upstream = FakeUpstream([100, 20], page_status={2: [401]})
    fetcher = build_fetcher(upstream, reauth_on_rejection=False)

    result = await fetcher.fetch_all()

    assert isinstance(result.error, UpstreamRejectedError)
    assert upstream.logins == 1
    assert upstream.pages_requested == [1, 2]


@pytest.mark.asyncio
async def test_invalid_records_are_dropped(build_fetcher) -> None:
    upstream = FakeUpstream([100, 10], invalid_records={1: 3})
    fetcher = build_fetcher(upstream)

    result = await fetcher.fetch_all()

    assert result.error is None
    assert result.raw_fetched == 110
    assert result.dropped == 3
    assert len(result.items) == 107
    assert all(item.id.strip() for item in result.items)


@pytest.mark.asyncio
async def test_empty_or_clause_returns_no_results(build_fetcher) -> None:
    upstream = FakeUpstream([10])
    fetcher = build_fetcher(upstream, channel_fields=[])

    result = await fetcher.fetch_all()

    assert isinstance(result.error, FilterExpressionError)
    assert result.items == []
    assert upstream.pages_requested == []


@pytest.mark.asyncio
async def test_cancel_between_pages(build_fetcher) -> None:
    upstream = FakeUpstream([100, 100, 100, 10])
    cancel = asyncio.Event()
    upstream.on_page = lambda page: cancel.set() if page == 2 else None
    fetcher = build_fetcher(upstream)

    result = await fetcher.fetch_all(cancel_event=cancel)

    assert isinstance(result.error, SyncCancelledError)
    assert result.items == []
    assert upstream.pages_requested == [1, 2]
