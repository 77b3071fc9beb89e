"""
Core dependencies for route protection and data access
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from marketplace_ops.database.data_access import DataAccessClient
from marketplace_ops.database.supabase_client import SupabaseClient, get_supabase
from marketplace_ops.modules.auth.models import SUPER_USER_TYPE
from marketplace_ops.modules.auth.service import AuthService
from supabase import Client
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    return auth_service.get_current_user(credentials.credentials)


def is_super_user(user_data: dict) -> bool:
    """Check if user is a super user from app_metadata"""
    # app_metadata is set server-side and cannot be modified by users
    app_metadata = user_data.get("app_metadata") or {}
    return app_metadata.get("type") == SUPER_USER_TYPE


def require_super_user(user_data: dict = Depends(get_current_user)) -> dict:
    """Every maintenance route is restricted to super users"""
    if not is_super_user(user_data):
        logger.warning(f"Rejected maintenance request from {user_data.get('email')}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Super user access required"
        )
    return user_data


def get_data_access() -> DataAccessClient:
    """Row access; uses the service role when configured so RLS does not hide rows"""
    return DataAccessClient(SupabaseClient.get_best_client())


def get_admin_data_access() -> DataAccessClient:
    """Service role access, required for auth admin calls"""
    return DataAccessClient(SupabaseClient.get_service_client())
