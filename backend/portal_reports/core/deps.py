from fastapi import HTTPException, Request, status

from portal_reports.services.fetcher import ReportFetcher


def get_fetcher(request: Request) -> ReportFetcher:
    fetcher = getattr(request.app.state, "fetcher", None)
    if fetcher is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Report fetcher not ready")
    return fetcher
