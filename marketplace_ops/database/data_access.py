"""
Thin request/response adapter over the supabase-py client.

Every call is executed immediately and awaited before returning; failures of
the remote service surface as RemoteRequestError with the original cause
attached, absence surfaces as NotFound from select_one only.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from supabase import Client

from marketplace_ops.core.exceptions import NotFound, RemoteRequestError
from marketplace_ops.database.filters import Condition, apply_filters, describe

logger = logging.getLogger(__name__)


class DataAccessClient:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _execute(self, operation: str, target: str, request):
        try:
            return request.execute()
        except Exception as e:
            logger.error(f"{operation} on {target} failed: {e}")
            raise RemoteRequestError(operation, target, e) from e

    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Sequence[Condition] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        query = apply_filters(self.supabase.table(table).select(columns), filters)
        if order_by:
            query = query.order(order_by, desc=descending)
        if limit is not None:
            query = query.limit(limit)
        result = self._execute("select", table, query)
        return result.data or []

    def select_all(
        self,
        table: str,
        columns: str = "*",
        filters: Sequence[Condition] = (),
        order_by: str = "id",
        page_size: int = 1000,
    ) -> List[Dict[str, Any]]:
        """Every matching row, read in pages so the server's max-rows cap cannot truncate it.

        `order_by` must be unique per row for the pages to be stable. A page
        shorter than `page_size` may only mean the cap is lower, so reading
        stops at the first empty page.
        """
        if page_size < 1:
            raise ValueError("page_size must be positive")
        rows: List[Dict[str, Any]] = []
        start = 0
        while True:
            query = apply_filters(self.supabase.table(table).select(columns), filters)
            query = query.order(order_by).range(start, start + page_size - 1)
            page = self._execute("select", table, query).data or []
            if not page:
                return rows
            rows.extend(page)
            start += len(page)

    def select_one(
        self,
        table: str,
        columns: str = "*",
        filters: Sequence[Condition] = (),
    ) -> Dict[str, Any]:
        """First matching row; raises NotFound when there is none"""
        rows = self.select(table, columns, filters, limit=1)
        if not rows:
            raise NotFound(table, describe(filters))
        return rows[0]

    def find_one(
        self,
        table: str,
        columns: str = "*",
        filters: Sequence[Condition] = (),
    ) -> Optional[Dict[str, Any]]:
        try:
            return self.select_one(table, columns, filters)
        except NotFound:
            return None

    def insert(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        result = self._execute("insert", table, self.supabase.table(table).insert(record))
        if not result.data:
            raise RemoteRequestError("insert", table, "no row returned")
        return result.data[0]

    def update(
        self,
        table: str,
        patch: Dict[str, Any],
        filters: Sequence[Condition],
    ) -> List[Dict[str, Any]]:
        if not filters:
            raise ValueError("Refusing to update without filters")
        query = apply_filters(self.supabase.table(table).update(patch), filters)
        result = self._execute("update", table, query)
        return result.data or []

    def delete(self, table: str, filters: Sequence[Condition]) -> List[Dict[str, Any]]:
        if not filters:
            raise ValueError("Refusing to delete without filters")
        query = apply_filters(self.supabase.table(table).delete(), filters)
        result = self._execute("delete", table, query)
        return result.data or []

    def count(self, table: str, filters: Sequence[Condition] = ()) -> int:
        query = apply_filters(
            self.supabase.table(table).select("id", count="exact", head=True), filters
        )
        result = self._execute("count", table, query)
        if result.count is None:
            raise RemoteRequestError("count", table, "no count returned")
        return result.count

    def call_remote_procedure(self, name: str, args: Optional[Dict[str, Any]] = None) -> Any:
        result = self._execute("rpc", name, self.supabase.rpc(name, args or {}))
        return result.data

    # Auth admin API: only works with the service role key

    def create_identity(
        self,
        email: str,
        password: str,
        user_metadata: Optional[Dict[str, Any]] = None,
        email_confirm: bool = True,
    ) -> Dict[str, Any]:
        try:
            response = self.supabase.auth.admin.create_user({
                "email": email,
                "password": password,
                "email_confirm": email_confirm,
                "user_metadata": user_metadata or {},
            })
        except Exception as e:
            raise RemoteRequestError("create_identity", email, e) from e
        if not response.user:
            raise RemoteRequestError("create_identity", email, "no user returned")
        return _identity_to_dict(response.user)

    def delete_identity(self, user_id: str) -> None:
        try:
            self.supabase.auth.admin.delete_user(user_id)
        except Exception as e:
            raise RemoteRequestError("delete_identity", user_id, e) from e

    def list_identities(self, page: int = 1, per_page: int = 50) -> List[Dict[str, Any]]:
        try:
            users = self.supabase.auth.admin.list_users(page=page, per_page=per_page)
        except Exception as e:
            raise RemoteRequestError("list_identities", "auth.users", e) from e
        return [_identity_to_dict(u) for u in users or []]


def _identity_to_dict(user) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "user_metadata": user.user_metadata or {},
        "app_metadata": user.app_metadata or {},
        "created_at": user.created_at,
    }
