from pydantic import BaseModel, EmailStr
from typing import Optional, Dict, Any
from datetime import datetime

CLIENT = "client"
PROVIDER = "provider"
USER_TYPES = (CLIENT, PROVIDER)


class UserRecord(BaseModel):
    id: str
    user_type: Optional[str] = None  # client, provider
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    company_name: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        extra = "ignore"

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


class UserSeed(BaseModel):
    """Data for a users row whose auth identity already exists"""
    id: str
    email: EmailStr
    user_type: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = ""
    company_name: Optional[str] = None


class UserOverview(BaseModel):
    user: UserRecord
    profile_table: Optional[str] = None
    profile: Optional[Dict[str, Any]] = None
