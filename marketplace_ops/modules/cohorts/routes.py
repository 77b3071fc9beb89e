from fastapi import APIRouter, Depends
from marketplace_ops.config import settings
from marketplace_ops.core.dependencies import get_admin_data_access, require_super_user
from marketplace_ops.database.data_access import DataAccessClient
from marketplace_ops.modules.cohorts.schemas import (
    CohortFilter, CohortDeletionRequest, CohortDeletionReport
)
from marketplace_ops.modules.cohorts.service import CohortService
from marketplace_ops.modules.users.schemas import UserRecord
from typing import List, Dict, Optional

router = APIRouter(prefix="/cohorts", tags=["cohorts"])


def get_cohort_service(db: DataAccessClient = Depends(get_admin_data_access)) -> CohortService:
    return CohortService(db)


@router.get("", response_model=List[UserRecord])
async def preview_cohort(
    user_type: Optional[str] = "client",
    email_pattern: Optional[str] = None,
    user_data: Dict = Depends(require_super_user),
    service: CohortService = Depends(get_cohort_service)
):
    """Users a deletion with the same filter would remove"""
    return service.find_cohort(CohortFilter(user_type=user_type, email_pattern=email_pattern))


# Plain def: the deletion paces itself with time.sleep, so it runs in the threadpool
@router.post("/delete", response_model=CohortDeletionReport)
def delete_cohort(
    request: CohortDeletionRequest,
    user_data: Dict = Depends(require_super_user),
    service: CohortService = Depends(get_cohort_service)
):
    """Delete the cohort's profile rows and auth identities; needs the confirmation token"""
    cohort = CohortFilter(user_type=request.user_type, email_pattern=request.email_pattern)
    confirmed = request.confirmation == settings.deletion_confirmation_token
    return service.delete_cohort(cohort, confirm=lambda users: confirmed)
