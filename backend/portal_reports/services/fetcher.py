import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple, Union

import httpx

from portal_reports.core.config import Settings
from portal_reports.core.exceptions import (
    MalformedResponseError,
    TokenProviderError,
    UpstreamFetchError,
)
from portal_reports.services.cache import ResponseCache, cache_key
from portal_reports.services.extractors import extract_cursor, extract_records
from portal_reports.services.normalizer import Record
from portal_reports.services.registry import ReportDefinition, ReportKind, resolve_report
from portal_reports.services.token_provider import StaticTokenProvider, TokenProvider

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (httpx.HTTPError, MalformedResponseError, TokenProviderError)
WINDOW_PARAMS = ("startDate", "endDate")


@dataclass
class ReportPage:
    rows: List[Record] = field(default_factory=list)
    next: Optional[str] = None


def describe_failure(exc: Exception) -> str:
    """Prefer the upstream error message over the transport one."""
    if isinstance(exc, httpx.HTTPStatusError):
        try:
            body = exc.response.json()
        except ValueError:
            body = None
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, str):
            return error
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return str(exc) or type(exc).__name__


class ReportFetcher:
    def __init__(
        self,
        client: httpx.AsyncClient,
        token_provider: TokenProvider,
        cache: ResponseCache,
        base_url: str,
        account_id_header: Optional[str] = None,
        user_agent: str = "portal",
        max_retries: int = 3,
        base_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.client = client
        self.token_provider = token_provider
        self.cache = cache
        self.base_url = base_url.rstrip("/")
        self.account_id_header = account_id_header
        self.user_agent = user_agent
        self.max_retries = max(1, max_retries)
        self.base_delay = base_delay
        self.sleep = sleep

    async def fetch_report(
        self,
        report: Union[str, ReportKind],
        tenant: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> ReportPage:
        kind, definition = resolve_report(report)
        query = dict(params or {})
        max_rows = query.pop("maxRows", None)
        if max_rows is not None:
            max_rows = int(max_rows)
        start_key = query.pop("start_key", None)
        camel_start_key = query.pop("startKey", None)
        start_key = start_key or camel_start_key

        key = cache_key(
            kind.value,
            tenant,
            query.get("startDate"),
            query.get("endDate"),
            max_rows=max_rows,
            start_key=start_key,
            filters={name: value for name, value in query.items() if name not in WINDOW_PARAMS},
        )
        entry = self.cache.get(key)
        if entry is not None:
            logger.debug("Cache hit for %s/%s (%s rows).", kind.value, tenant, len(entry.rows))
            return ReportPage(rows=list(entry.rows), next=entry.next)

        url = f"{self.base_url}{definition.path}"
        delay = self.base_delay
        attempt = 0
        while True:
            attempt += 1
            try:
                rows, cursor = await self._collect_pages(definition, url, tenant, query, max_rows, start_key)
                break
            except RETRYABLE_ERRORS as exc:
                detail = describe_failure(exc)
                if attempt >= self.max_retries:
                    logger.error(
                        "Report %s for %s failed after %s attempts: %s",
                        kind.value,
                        tenant,
                        attempt,
                        detail,
                    )
                    raise UpstreamFetchError(kind.value, tenant, detail, attempt) from exc
                logger.warning(
                    "Report fetch failed (%s); retrying in %.1fs (attempt %s/%s).",
                    detail,
                    delay,
                    attempt,
                    self.max_retries,
                )
                await self.sleep(delay)
                delay *= 2

        rows = definition.normalize(rows)
        self.cache.set(key, rows, cursor)
        logger.info("Fetched %s rows for %s/%s.", len(rows), kind.value, tenant)
        return ReportPage(rows=list(rows), next=cursor)

    async def _collect_pages(
        self,
        definition: ReportDefinition,
        url: str,
        tenant: str,
        params: Dict[str, Any],
        max_rows: Optional[int],
        start_key: Optional[str],
    ) -> Tuple[List[Record], Optional[str]]:
        # a failed attempt discards whatever it accumulated
        out: List[Record] = []
        cursor = start_key
        while True:
            token = await self.token_provider.get_portal_token(tenant)
            response = await self.client.get(
                url,
                params=self._build_query(definition, params, cursor),
                headers=self._headers(token, tenant),
            )
            response.raise_for_status()
            try:
                body = response.json()
            except ValueError as exc:
                raise MalformedResponseError(f"Upstream returned non-JSON body for {url}") from exc
            chunk = extract_records(body)
            if max_rows is not None:
                chunk = chunk[: max(max_rows - len(out), 0)]
            out.extend(chunk)
            cursor = extract_cursor(body)
            if out or not cursor:
                break
            if max_rows is not None and len(out) >= max_rows:
                break
        return out, cursor

    def _build_query(
        self, definition: ReportDefinition, params: Dict[str, Any], cursor: Optional[str]
    ) -> Dict[str, Any]:
        query = {name: value for name, value in params.items() if value is not None}
        if definition.fields_param:
            query["fields"] = definition.fields_param
        if cursor:
            query["start_key"] = cursor
        return query

    def _headers(self, token: str, tenant: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "X-User-Agent": self.user_agent,
            "X-Account-ID": self.account_id_header or tenant,
        }

    async def fetch_cdrs(self, tenant: str, params: Optional[Mapping[str, Any]] = None) -> ReportPage:
        return await self.fetch_report(ReportKind.CDRS, tenant, params)

    async def fetch_queue_calls(self, tenant: str, params: Optional[Mapping[str, Any]] = None) -> ReportPage:
        return await self.fetch_report(ReportKind.QUEUE_CALLS, tenant, params)

    async def fetch_queue_outbound_calls(
        self, tenant: str, params: Optional[Mapping[str, Any]] = None
    ) -> ReportPage:
        return await self.fetch_report(ReportKind.QUEUE_OUTBOUND_CALLS, tenant, params)

    async def fetch_campaigns_activity(
        self, tenant: str, params: Optional[Mapping[str, Any]] = None
    ) -> ReportPage:
        return await self.fetch_report(ReportKind.CAMPAIGNS_ACTIVITY, tenant, params)


def build_fetcher(
    settings: Settings,
    client: Optional[httpx.AsyncClient] = None,
    cache: Optional[ResponseCache] = None,
    token_provider: Optional[TokenProvider] = None,
) -> ReportFetcher:
    if client is None:
        client = httpx.AsyncClient(timeout=settings.http_timeout)
    if cache is None:
        cache = ResponseCache(ttl=settings.cache_ttl_seconds)
    if token_provider is None:
        token_provider = StaticTokenProvider(settings.portal_tokens, default_token=settings.portal_token)
    return ReportFetcher(
        client=client,
        token_provider=token_provider,
        cache=cache,
        base_url=settings.base_url,
        account_id_header=settings.account_id_header,
        user_agent=settings.user_agent,
        max_retries=settings.max_retries,
        base_delay=settings.retry_base_delay,
    )
