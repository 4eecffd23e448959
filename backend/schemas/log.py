from datetime import datetime
from typing import Any, List, Optional

from schemas.base import APIModel


class LogResponse(APIModel):
    id: int
    user_id: Optional[str] = None
    action: str
    resource: str
    status: str
    ip: Optional[str] = None
    ts: datetime
    meta: Optional[Any] = None


class LogPage(APIModel):
    items: List[LogResponse]
    total: int
    page: int
    page_size: int
