from pydantic import BaseModel
from typing import Dict, Any, Optional


class TableCounts(BaseModel):
    counts: Dict[str, int]


class IdentityResponse(BaseModel):
    id: str
    email: Optional[str] = None
    user_metadata: Dict[str, Any] = {}
    app_metadata: Dict[str, Any] = {}
    created_at: Optional[Any] = None
