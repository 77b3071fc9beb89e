from fastapi import APIRouter, Depends
from marketplace_ops.core.dependencies import get_data_access, require_super_user
from marketplace_ops.database.data_access import DataAccessClient
from marketplace_ops.modules.users.schemas import UserRecord
from marketplace_ops.modules.users.service import UserService
from typing import List, Dict, Optional

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(db: DataAccessClient = Depends(get_data_access)) -> UserService:
    return UserService(db)


@router.get("", response_model=List[UserRecord])
async def list_users(
    user_type: Optional[str] = None,
    limit: Optional[int] = 50,
    user_data: Dict = Depends(require_super_user),
    service: UserService = Depends(get_user_service)
):
    """List users, newest first, optionally filtered by user_type"""
    return service.list_users(user_type=user_type, limit=limit)


@router.get("/{user_id}", response_model=UserRecord)
async def get_user(
    user_id: str,
    user_data: Dict = Depends(require_super_user),
    service: UserService = Depends(get_user_service)
):
    return service.get_user_by_id(user_id)
