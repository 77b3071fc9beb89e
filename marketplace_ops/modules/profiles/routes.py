from fastapi import APIRouter, Depends
from marketplace_ops.core.dependencies import get_data_access, require_super_user
from marketplace_ops.core.results import BatchResult
from marketplace_ops.database.data_access import DataAccessClient
from marketplace_ops.modules.profiles.schemas import (
    ProfileRepairRequest, ProfileRepairResult, UserRecordResult
)
from marketplace_ops.modules.profiles.service import ProfileService
from marketplace_ops.modules.users.schemas import UserRecord, UserSeed
from typing import List, Dict, Optional

router = APIRouter(prefix="/profiles", tags=["profiles"])


def get_profile_service(db: DataAccessClient = Depends(get_data_access)) -> ProfileService:
    return ProfileService(db)


@router.get("/missing", response_model=List[UserRecord])
async def users_without_profiles(
    user_type: Optional[str] = None,
    user_data: Dict = Depends(require_super_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Users whose client/provider profile row is missing"""
    return service.find_users_without_profiles(user_type)


@router.post("/repair", response_model=ProfileRepairResult)
async def repair_profile(
    request: ProfileRepairRequest,
    user_data: Dict = Depends(require_super_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Create the missing profile row of one user"""
    return service.ensure_profile_for_email(request.email)


@router.post("/repair-all", response_model=BatchResult)
async def repair_all_profiles(
    user_type: Optional[str] = None,
    user_data: Dict = Depends(require_super_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Create profile rows for every user that lacks one"""
    return service.reconcile_all(user_type)


@router.post("/users", response_model=UserRecordResult, status_code=201)
async def ensure_user(
    seed: UserSeed,
    user_data: Dict = Depends(require_super_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Insert the users row of an existing auth identity, then its profile"""
    return service.ensure_user_record(seed)
