from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class ReportResponse(BaseModel):
    data: List[Dict[str, Any]]
    next: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    cached_entries: int = 0
