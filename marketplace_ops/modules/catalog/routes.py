from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError
from marketplace_ops.config import settings
from marketplace_ops.core.dependencies import get_data_access, require_super_user
from marketplace_ops.database.data_access import DataAccessClient
from marketplace_ops.modules.catalog.schemas import (
    ArchiveRequest, FallbackTarget, OrphanScanReport,
    ReassignmentReport, ReassignmentRequest
)
from marketplace_ops.modules.catalog.service import CatalogService
from typing import Dict, Optional

router = APIRouter(prefix="/services", tags=["services"])


def get_catalog_service(db: DataAccessClient = Depends(get_data_access)) -> CatalogService:
    return CatalogService(db)


@router.get("/orphans", response_model=OrphanScanReport)
async def scan_orphans(
    limit: Optional[int] = None,
    user_data: Dict = Depends(require_super_user),
    service: CatalogService = Depends(get_catalog_service)
):
    """Services whose provider_id has no provider profile"""
    return service.scan_service_providers(limit)


@router.post("/orphans/reassign", response_model=ReassignmentReport)
async def reassign_orphans(
    request: ReassignmentRequest,
    user_data: Dict = Depends(require_super_user),
    service: CatalogService = Depends(get_catalog_service)
):
    """Point orphaned services at a fallback provider"""
    business_name = request.business_name
    if not business_name and not request.user_id:
        business_name = settings.default_fallback_business_name
    try:
        target = FallbackTarget(business_name=business_name, user_id=request.user_id)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))
    return service.reassign_orphaned_services(target, limit=request.limit, dry_run=request.dry_run)


@router.post("/archive")
async def archive_service(
    request: ArchiveRequest,
    user_data: Dict = Depends(require_super_user),
    service: CatalogService = Depends(get_catalog_service)
):
    """Move a service into archived_services"""
    result = service.archive_service(request.service_id, request.provider_id)
    return {"service_id": request.service_id, "result": result}
