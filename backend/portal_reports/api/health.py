from fastapi import APIRouter, Request

from portal_reports.schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health(request: Request) -> HealthResponse:
    fetcher = getattr(request.app.state, "fetcher", None)
    cached = len(fetcher.cache) if fetcher is not None else 0
    return HealthResponse(status="ok", cached_entries=cached)
