import io
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse

from portal_reports.core.config import settings
from portal_reports.core.deps import get_fetcher
from portal_reports.core.exceptions import UnknownReportError, UpstreamFetchError
from portal_reports.schemas import ReportResponse
from portal_reports.services.export import to_csv
from portal_reports.services.fetcher import ReportFetcher, ReportPage
from portal_reports.services.window import to_epoch_seconds

router = APIRouter(prefix="/api/reports", tags=["reports"])

logger = logging.getLogger(__name__)


def parse_epoch_seconds(value: str, label: str) -> int:
    try:
        return to_epoch_seconds(value)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid {label} date") from exc


def build_fetch_params(
    start: Optional[str], end: Optional[str], limit: Optional[int], start_key: Optional[str]
) -> Dict[str, Any]:
    params: Dict[str, Any] = {}
    if start:
        params["startDate"] = parse_epoch_seconds(start, "start")
    if end:
        params["endDate"] = parse_epoch_seconds(end, "end")
    if start_key:
        params["start_key"] = start_key
    ceiling = settings.default_row_limit
    params["maxRows"] = min(limit, ceiling) if limit and limit > 0 else ceiling
    return params


def _answered_at_from_history(history: Any) -> Optional[str]:
    if isinstance(history, str):
        try:
            history = json.loads(history)
        except ValueError:
            return None
    if not isinstance(history, list):
        return None
    for event in history:
        if not isinstance(event, dict):
            continue
        if event.get("event") == "answer" or event.get("connected"):
            last_attempt = event.get("last_attempt")
            if not isinstance(last_attempt, (int, float)) or not last_attempt:
                return None
            # values above this are already milliseconds
            millis = last_attempt if last_attempt > 10_000_000_000 else last_attempt * 1000
            moment = datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
            return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return None


def with_answered_time(row: Dict[str, Any]) -> Dict[str, Any]:
    answered = row.get("answered_time") or _answered_at_from_history(row.get("agent_history"))
    return {**row, "answered_time": answered or "--"}


async def _fetch(
    fetcher: ReportFetcher,
    report: str,
    account: Optional[str],
    start: Optional[str],
    end: Optional[str],
    limit: Optional[int],
    start_key: Optional[str],
) -> ReportPage:
    if not account:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing account query param")
    params = build_fetch_params(start, end, limit, start_key)
    logger.info(
        "fetch_report payload report=%s account=%s startDate=%s endDate=%s startKey=%s limit=%s",
        report,
        account,
        params.get("startDate"),
        params.get("endDate"),
        params.get("start_key"),
        params.get("maxRows"),
    )
    try:
        return await fetcher.fetch_report(report, account, params)
    except UnknownReportError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except UpstreamFetchError as exc:
        logger.error("Upstream fetch failed for %s/%s: %s", report, account, exc.detail)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.detail) from exc


@router.get("/{report}", response_model=ReportResponse)
async def get_report(
    report: str,
    account: Optional[str] = None,
    start: Optional[str] = None,
    end: Optional[str] = None,
    limit: Optional[int] = None,
    start_key: Optional[str] = Query(default=None, alias="startKey"),
    fetcher: ReportFetcher = Depends(get_fetcher),
) -> ReportResponse:
    page = await _fetch(fetcher, report, account, start, end, limit, start_key)
    return ReportResponse(data=[with_answered_time(row) for row in page.rows], next=page.next)


@router.get("/{report}/export")
async def export_report(
    report: str,
    account: Optional[str] = None,
    start: Optional[str] = None,
    end: Optional[str] = None,
    limit: Optional[int] = None,
    start_key: Optional[str] = Query(default=None, alias="startKey"),
    fetcher: ReportFetcher = Depends(get_fetcher),
):
    page = await _fetch(fetcher, report, account, start, end, limit, start_key)
    output = io.StringIO(to_csv([with_answered_time(row) for row in page.rows]))
    return StreamingResponse(
        output,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={report}.csv"},
    )
