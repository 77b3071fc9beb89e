from typing import List
import logging

from marketplace_ops.database.data_access import DataAccessClient
from marketplace_ops.modules.catalog.models import SERVICES_TABLE, ARCHIVED_SERVICES_TABLE
from marketplace_ops.modules.inspection.schemas import TableCounts, IdentityResponse
from marketplace_ops.modules.profiles.models import (
    CLIENT_PROFILES_TABLE, PROVIDER_PROFILES_TABLE, PROFILE_TABLES
)
from marketplace_ops.modules.profiles.service import ProfileService
from marketplace_ops.modules.users.schemas import UserOverview
from marketplace_ops.modules.users.service import USERS_TABLE

logger = logging.getLogger(__name__)

INSPECTED_TABLES = (
    USERS_TABLE,
    CLIENT_PROFILES_TABLE,
    PROVIDER_PROFILES_TABLE,
    SERVICES_TABLE,
    ARCHIVED_SERVICES_TABLE,
)


class InspectionService:
    """Read-only views over the marketplace tables"""

    def __init__(self, db: DataAccessClient):
        self.db = db
        self.profiles = ProfileService(db)

    def table_counts(self) -> TableCounts:
        return TableCounts(counts={table: self.db.count(table) for table in INSPECTED_TABLES})

    def user_overview(self, email: str) -> UserOverview:
        """User row plus its profile row; raises NotFound when the user is missing"""
        user = self.profiles.users.get_user_by_email(email)
        profile = self.profiles.get_profile(user)
        if profile is None:
            logger.info(f"No profile row for {email} ({user.user_type})")
        return UserOverview(
            user=user,
            profile_table=PROFILE_TABLES.get(user.user_type or ""),
            profile=profile,
        )

    def list_identities(self, page: int = 1, per_page: int = 50) -> List[IdentityResponse]:
        """Auth identities; needs the service role client"""
        return [IdentityResponse(**i) for i in self.db.list_identities(page=page, per_page=per_page)]
