from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from marketplace_ops.core.exceptions import RemoteRequestError
from marketplace_ops.core.results import BatchResult
from marketplace_ops.database.data_access import DataAccessClient
from marketplace_ops.database import filters as f
from marketplace_ops.modules.profiles.models import (
    PROFILE_TABLES, DEFAULT_COUNTRY, DEFAULT_LANGUAGES,
    DEFAULT_COMPANY_NAME, DEFAULT_CONTACT_NAME,
)
from marketplace_ops.modules.profiles.schemas import (
    ProfileRepairResult, ProfileRepairStatus, UserRecordResult
)
from marketplace_ops.modules.users.schemas import UserRecord, UserSeed, USER_TYPES
from marketplace_ops.modules.users.service import UserService, USERS_TABLE, USER_COLUMNS

logger = logging.getLogger(__name__)


def _contact_name(user: UserRecord) -> str:
    return user.full_name or DEFAULT_CONTACT_NAME


def build_client_profile(user: UserRecord) -> Dict[str, Any]:
    """Client profile row with safe defaults for everything users does not carry"""
    return {
        "user_id": user.id,
        "company_name": user.company_name or DEFAULT_COMPANY_NAME,
        "vat_number": "",
        "fiscal_code": "",
        "company_size": "micro",
        "industry_sector": "",
        "employees_count": 1,
        "phone": user.phone or "",
        "legal_street": "",
        "legal_city": "",
        "legal_province": "",
        "legal_postal_code": "",
        "legal_country": DEFAULT_COUNTRY,
        "contact_person_name": _contact_name(user),
        "contact_person_email": user.email,
        "contact_person_phone": user.phone or "",
    }


def build_provider_profile(user: UserRecord) -> Dict[str, Any]:
    """Provider profile row with safe defaults for everything users does not carry"""
    return {
        "user_id": user.id,
        "business_name": user.company_name or DEFAULT_COMPANY_NAME,
        "vat_number": "",
        "fiscal_code": "",
        "phone": user.phone or "",
        "website": "",
        "description": "",
        "experience_years": 0,
        "team_size": 1,
        "street": "",
        "city": "",
        "province": "",
        "postal_code": "",
        "country": DEFAULT_COUNTRY,
        "contact_person_name": _contact_name(user),
        "contact_person_email": user.email,
        "contact_person_phone": user.phone or "",
        "specializations": [],
        "service_areas": [],
        "languages": list(DEFAULT_LANGUAGES),
        "rating_average": 0.0,
        "reviews_count": 0,
        "verified": False,
        "auto_accept_bookings": False,
        "advance_notice_hours": 24,
    }


PROFILE_BUILDERS = {
    "client": build_client_profile,
    "provider": build_provider_profile,
}


class ProfileService:
    def __init__(self, db: DataAccessClient, page_size: int = 1000):
        self.db = db
        self.users = UserService(db)
        self.page_size = page_size

    def get_profile(self, user: UserRecord) -> Optional[Dict[str, Any]]:
        """Profile row matching the user's type, None when absent"""
        table = PROFILE_TABLES.get(user.user_type or "")
        if table is None:
            return None
        return self.db.find_one(table, "*", [f.eq("user_id", user.id)])

    def ensure_profile(self, user: UserRecord) -> ProfileRepairResult:
        """Create the missing profile row for a user; no-op when it already exists"""
        table = PROFILE_TABLES.get(user.user_type or "")
        result = ProfileRepairResult(
            user_id=user.id,
            email=user.email,
            user_type=user.user_type,
            profile_table=table,
            status=ProfileRepairStatus.SKIPPED,
        )
        if table is None:
            result.error = f"Unsupported user_type: {user.user_type!r}"
            logger.warning(f"Skipping {user.email or user.id}: {result.error}")
            return result

        existing = self.db.find_one(table, "id", [f.eq("user_id", user.id)])
        if existing:
            logger.info(f"Profile already exists in {table} for {user.email or user.id}")
            result.status = ProfileRepairStatus.EXISTING
            result.profile_id = existing.get("id")
            return result

        record = PROFILE_BUILDERS[user.user_type](user)
        try:
            created = self.db.insert(table, record)
        except RemoteRequestError as e:
            logger.error(f"Could not create {table} row for {user.email or user.id}: {e.cause}")
            result.status = ProfileRepairStatus.FAILED
            result.error = str(e.cause)
            return result

        logger.info(f"Created {table} row for {user.email or user.id}")
        result.status = ProfileRepairStatus.CREATED
        result.profile_id = created.get("id")
        return result

    def ensure_profile_for_email(self, email: str) -> ProfileRepairResult:
        user = self.users.get_user_by_email(email)
        logger.info(f"Found user {user.email} of type {user.user_type}")
        return self.ensure_profile(user)

    def find_users_without_profiles(self, user_type: Optional[str] = None) -> List[UserRecord]:
        """Users of a profiled type whose matching profile row is missing"""
        types = [user_type] if user_type else list(USER_TYPES)
        missing: List[UserRecord] = []
        for kind in types:
            table = PROFILE_TABLES.get(kind)
            if table is None:
                raise ValueError(f"Unsupported user_type: {kind!r}")
            users = [
                UserRecord(**row)
                for row in self.db.select_all(
                    USERS_TABLE, USER_COLUMNS, [f.eq("user_type", kind)], page_size=self.page_size
                )
            ]
            if not users:
                continue
            profiled = {
                row["user_id"]
                for row in self.db.select_all(table, "id, user_id", page_size=self.page_size)
            }
            missing.extend(u for u in users if u.id not in profiled)
        logger.info(f"Found {len(missing)} user(s) without a profile row")
        return missing

    def reconcile_all(self, user_type: Optional[str] = None) -> BatchResult:
        """Create profile rows for every user that lacks one; failures do not stop the loop"""
        batch = BatchResult(operation="reconcile_profiles")
        for user in self.find_users_without_profiles(user_type):
            key = user.email or user.id
            try:
                outcome = self.ensure_profile(user)
            except RemoteRequestError as e:
                batch.record_failure(key, e)
                continue
            if outcome.success:
                batch.record_success(key, f"{outcome.profile_table}: {outcome.status.value}")
            else:
                batch.record_failure(key, outcome.error)
        logger.info(
            f"Profile reconciliation: {batch.success_count} repaired, {batch.failure_count} failed"
        )
        return batch

    def ensure_user_record(self, seed: UserSeed) -> UserRecordResult:
        """Insert the users row for an identity that has none, then make sure its profile exists"""
        user_created = False
        existing = self.db.find_one(USERS_TABLE, "id", [f.eq("id", seed.id)])
        if existing:
            logger.info(f"users row already exists for {seed.email}")
        else:
            now = datetime.now(timezone.utc).isoformat()
            self.db.insert(USERS_TABLE, {
                "id": seed.id,
                "email": seed.email,
                "company_name": seed.company_name,
                "user_type": seed.user_type,
                "first_name": seed.first_name,
                "last_name": seed.last_name,
                "phone": seed.phone or "",
                "created_at": now,
                "updated_at": now,
            })
            user_created = True
            logger.info(f"Created users row for {seed.email}")

        user = UserRecord(**seed.model_dump())
        return UserRecordResult(
            user_id=seed.id,
            user_created=user_created,
            profile=self.ensure_profile(user),
        )
