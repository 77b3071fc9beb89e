from pydantic import BaseModel
from typing import List, Optional

from marketplace_ops.core.results import BatchResult
from marketplace_ops.modules.users.schemas import UserRecord


class CohortFilter(BaseModel):
    user_type: Optional[str] = "client"
    email_pattern: Optional[str] = None  # ilike pattern, e.g. %@example.com

    def describe(self) -> str:
        parts = []
        if self.user_type:
            parts.append(f"user_type = {self.user_type}")
        if self.email_pattern:
            parts.append(f"email ilike {self.email_pattern}")
        return " and ".join(parts) or "all users"


class CohortDeletionRequest(CohortFilter):
    confirmation: str


class CohortDeletionReport(BaseModel):
    cohort: str
    matched: List[UserRecord] = []
    profiles: BatchResult
    identities: BatchResult
    remaining: Optional[int] = None
