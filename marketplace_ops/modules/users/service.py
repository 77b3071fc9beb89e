from marketplace_ops.database.data_access import DataAccessClient
from marketplace_ops.database import filters as f
from marketplace_ops.modules.users.models import USERS_TABLE
from marketplace_ops.modules.users.schemas import UserRecord
from typing import List, Optional

USER_COLUMNS = "id, email, first_name, last_name, phone, user_type, company_name, created_at"


class UserService:
    def __init__(self, db: DataAccessClient):
        self.db = db

    def get_user_by_id(self, user_id: str) -> UserRecord:
        """Get user row by ID; raises NotFound"""
        row = self.db.select_one(USERS_TABLE, "*", [f.eq("id", user_id)])
        return UserRecord(**row)

    def get_user_by_email(self, email: str) -> UserRecord:
        """Get user row by email; raises NotFound"""
        row = self.db.select_one(USERS_TABLE, "*", [f.eq("email", email)])
        return UserRecord(**row)

    def list_users(self, user_type: Optional[str] = None, limit: Optional[int] = None) -> List[UserRecord]:
        conditions = [f.eq("user_type", user_type)] if user_type else []
        rows = self.db.select(
            USERS_TABLE,
            USER_COLUMNS,
            conditions,
            order_by="created_at",
            descending=True,
            limit=limit,
        )
        return [UserRecord(**row) for row in rows]
