from fastapi import APIRouter, Depends
from marketplace_ops.core.dependencies import get_data_access, get_admin_data_access, require_super_user
from marketplace_ops.database.data_access import DataAccessClient
from marketplace_ops.modules.inspection.schemas import TableCounts, IdentityResponse
from marketplace_ops.modules.inspection.service import InspectionService
from marketplace_ops.modules.users.schemas import UserOverview
from typing import List, Dict

router = APIRouter(prefix="/inspection", tags=["inspection"])


def get_inspection_service(db: DataAccessClient = Depends(get_data_access)) -> InspectionService:
    return InspectionService(db)


@router.get("/tables", response_model=TableCounts)
async def table_counts(
    user_data: Dict = Depends(require_super_user),
    service: InspectionService = Depends(get_inspection_service)
):
    """Row counts of the marketplace tables"""
    return service.table_counts()


@router.get("/users/{email}", response_model=UserOverview)
async def user_overview(
    email: str,
    user_data: Dict = Depends(require_super_user),
    service: InspectionService = Depends(get_inspection_service)
):
    """User row together with its profile row"""
    return service.user_overview(email)


@router.get("/identities", response_model=List[IdentityResponse])
async def list_identities(
    page: int = 1,
    per_page: int = 50,
    user_data: Dict = Depends(require_super_user),
    db: DataAccessClient = Depends(get_admin_data_access)
):
    """Auth identities (service role)"""
    return InspectionService(db).list_identities(page=page, per_page=per_page)
