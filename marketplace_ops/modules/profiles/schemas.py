from enum import Enum
from pydantic import BaseModel, EmailStr
from typing import Optional


class ProfileRepairStatus(str, Enum):
    CREATED = "created"
    EXISTING = "existing"
    FAILED = "failed"
    SKIPPED = "skipped"


class ProfileRepairResult(BaseModel):
    user_id: str
    email: Optional[str] = None
    user_type: Optional[str] = None
    profile_table: Optional[str] = None
    status: ProfileRepairStatus
    profile_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status in (ProfileRepairStatus.CREATED, ProfileRepairStatus.EXISTING)


class ProfileRepairRequest(BaseModel):
    email: EmailStr


class UserRecordResult(BaseModel):
    user_id: str
    user_created: bool
    profile: ProfileRepairResult
