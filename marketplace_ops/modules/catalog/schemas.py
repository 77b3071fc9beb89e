from pydantic import BaseModel, computed_field, model_validator
from typing import List, Optional

from marketplace_ops.core.results import BatchResult


class FallbackTarget(BaseModel):
    """Provider that absorbs orphaned services, identified by exactly one of the two fields"""
    business_name: Optional[str] = None
    user_id: Optional[str] = None

    @model_validator(mode="after")
    def require_exactly_one(self):
        if not self.business_name and not self.user_id:
            raise ValueError("Either business_name or user_id must be set")
        if self.business_name and self.user_id:
            raise ValueError("Cannot set both business_name and user_id")
        return self

    def describe(self) -> str:
        if self.business_name:
            return f"business_name={self.business_name!r}"
        return f"user_id={self.user_id}"


class FallbackProvider(BaseModel):
    user_id: str
    business_name: Optional[str] = None


class ServiceProviderCheck(BaseModel):
    service_id: str
    service_title: Optional[str] = None
    provider_id: Optional[str] = None
    has_profile: bool
    business_name: Optional[str] = None


class OrphanScanReport(BaseModel):
    limit: int
    checks: List[ServiceProviderCheck] = []

    @computed_field
    @property
    def orphaned(self) -> List[ServiceProviderCheck]:
        return [c for c in self.checks if not c.has_profile]


class ReassignmentRequest(BaseModel):
    business_name: Optional[str] = None
    user_id: Optional[str] = None
    limit: Optional[int] = None
    dry_run: bool = False


class ReassignmentReport(BaseModel):
    scan: OrphanScanReport
    fallback: Optional[FallbackProvider] = None
    dry_run: bool = False
    result: BatchResult


class ArchiveRequest(BaseModel):
    service_id: str
    provider_id: str
