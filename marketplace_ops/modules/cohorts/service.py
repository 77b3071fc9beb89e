from typing import Callable, List, Optional, Sequence
import logging
import time

from marketplace_ops.config import settings
from marketplace_ops.core.exceptions import ConfirmationDeclined, RemoteRequestError
from marketplace_ops.core.results import BatchResult
from marketplace_ops.database.data_access import DataAccessClient
from marketplace_ops.database import filters as f
from marketplace_ops.modules.cohorts.schemas import CohortFilter, CohortDeletionReport
from marketplace_ops.modules.profiles.models import PROFILE_TABLES
from marketplace_ops.modules.users.schemas import UserRecord
from marketplace_ops.modules.users.service import USERS_TABLE

logger = logging.getLogger(__name__)

ConfirmGate = Callable[[Sequence[UserRecord]], bool]


def _conditions(cohort: CohortFilter) -> List[f.Condition]:
    conditions: List[f.Condition] = []
    if cohort.user_type:
        conditions.append(f.eq("user_type", cohort.user_type))
    if cohort.email_pattern:
        conditions.append(f.ilike("email", cohort.email_pattern))
    return conditions


class CohortService:
    """Bulk deletion of users together with their profile rows and auth identities.

    Needs a DataAccessClient built on the service role client: identities can
    only be removed through the auth admin API.
    """

    def __init__(
        self,
        db: DataAccessClient,
        sleep: Callable[[float], None] = time.sleep,
        profile_delay: Optional[float] = None,
        identity_delay: Optional[float] = None,
    ):
        self.db = db
        self.sleep = sleep
        self.profile_delay = (
            settings.cohort_profile_delay_seconds if profile_delay is None else profile_delay
        )
        self.identity_delay = (
            settings.cohort_identity_delay_seconds if identity_delay is None else identity_delay
        )

    def find_cohort(self, cohort: CohortFilter) -> List[UserRecord]:
        rows = self.db.select(
            USERS_TABLE, "id, email, user_type, company_name", _conditions(cohort)
        )
        return [UserRecord(**row) for row in rows]

    def count_cohort(self, cohort: CohortFilter) -> int:
        return self.db.count(USERS_TABLE, _conditions(cohort))

    def delete_cohort(self, cohort: CohortFilter, confirm: ConfirmGate) -> CohortDeletionReport:
        """Delete profile rows, then auth identities, of every user matching the cohort.

        `confirm` receives the matched users and must return True before
        anything is deleted. There is no rollback: each step records its
        per-user outcome and carries on.
        """
        users = self.find_cohort(cohort)
        report = CohortDeletionReport(
            cohort=cohort.describe(),
            matched=users,
            profiles=BatchResult(operation="delete_profiles"),
            identities=BatchResult(operation="delete_identities"),
        )
        if not users:
            logger.info(f"No users match {cohort.describe()}")
            return report

        logger.info(f"{len(users)} user(s) match {cohort.describe()}")
        if not confirm(users):
            raise ConfirmationDeclined(f"Deletion of {len(users)} user(s) was not confirmed")

        for user in users:
            self._delete_profile(user, report.profiles)
            self.sleep(self.profile_delay)

        for user in users:
            try:
                self.db.delete_identity(user.id)
            except RemoteRequestError as e:
                logger.error(f"Could not delete identity of {user.email}: {e.cause}")
                report.identities.record_failure(user.email or user.id, e.cause)
            else:
                logger.info(f"Deleted identity of {user.email}")
                report.identities.record_success(user.email or user.id)
            self.sleep(self.identity_delay)

        try:
            report.remaining = self.count_cohort(cohort)
        except RemoteRequestError as e:
            logger.warning(f"Could not verify remaining users: {e.cause}")

        logger.info(
            f"Cohort deletion: {report.identities.success_count} deleted, "
            f"{report.identities.failure_count} failed, {len(users)} processed"
        )
        return report

    def _delete_profile(self, user: UserRecord, batch: BatchResult) -> None:
        key = user.email or user.id
        table = PROFILE_TABLES.get(user.user_type or "")
        if table is None:
            batch.record_success(key, "no profile table for this user_type")
            return
        try:
            deleted = self.db.delete(table, [f.eq("user_id", user.id)])
        except RemoteRequestError as e:
            logger.warning(f"Could not delete {table} row of {key}: {e.cause}")
            batch.record_failure(key, e.cause)
            return
        batch.record_success(key, f"{len(deleted)} {table} row(s) deleted")
