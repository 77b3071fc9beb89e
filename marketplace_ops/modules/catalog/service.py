from typing import Any, Optional
import logging

from marketplace_ops.config import settings
from marketplace_ops.core.exceptions import PreconditionMissing, RemoteRequestError
from marketplace_ops.core.results import BatchResult
from marketplace_ops.database.data_access import DataAccessClient
from marketplace_ops.database import filters as f
from marketplace_ops.modules.catalog.models import SERVICES_TABLE
from marketplace_ops.modules.catalog.schemas import (
    FallbackTarget, FallbackProvider, ServiceProviderCheck,
    OrphanScanReport, ReassignmentReport
)
from marketplace_ops.modules.profiles.models import PROVIDER_PROFILES_TABLE

logger = logging.getLogger(__name__)


class CatalogService:
    def __init__(self, db: DataAccessClient):
        self.db = db

    def scan_service_providers(self, limit: Optional[int] = None) -> OrphanScanReport:
        """Classify up to `limit` services by whether their provider_id has a provider profile"""
        if limit is None:
            limit = settings.orphan_scan_limit
        services = self.db.select(SERVICES_TABLE, "id, title, provider_id", limit=limit)
        logger.info(f"Checking provider profiles for {len(services)} service(s)")

        report = OrphanScanReport(limit=limit)
        for service in services:
            provider_id = service.get("provider_id")
            profile = None
            if provider_id:
                profile = self.db.find_one(
                    PROVIDER_PROFILES_TABLE, "id, business_name", [f.eq("user_id", provider_id)]
                )
            report.checks.append(ServiceProviderCheck(
                service_id=service["id"],
                service_title=service.get("title"),
                provider_id=provider_id,
                has_profile=profile is not None,
                business_name=profile.get("business_name") if profile else None,
            ))
        logger.info(f"{len(report.orphaned)} service(s) without a provider profile")
        return report

    def count_services_without_provider(self) -> int:
        return self.db.count(SERVICES_TABLE, [f.is_null("provider_id")])

    def find_fallback_provider(self, target: FallbackTarget) -> FallbackProvider:
        """Resolve the provider that absorbs orphans; raises PreconditionMissing"""
        if target.business_name:
            condition = f.eq("business_name", target.business_name)
        else:
            condition = f.eq("user_id", target.user_id)
        row = self.db.find_one(PROVIDER_PROFILES_TABLE, "user_id, business_name", [condition])
        if row is None:
            raise PreconditionMissing(f"Fallback provider not found ({target.describe()})")
        return FallbackProvider(**row)

    def reassign_orphaned_services(
        self,
        target: FallbackTarget,
        limit: Optional[int] = None,
        dry_run: bool = False,
    ) -> ReassignmentReport:
        """Point every orphaned service of the scan at the fallback provider.

        The fallback is resolved before the first update, so a missing target
        leaves every row untouched. Updates run one by one and a failing row
        does not stop the others.
        """
        scan = self.scan_service_providers(limit)
        batch = BatchResult(operation="reassign_orphaned_services")
        orphans = scan.orphaned
        if not orphans:
            logger.info("Every scanned service has a provider profile")
            return ReassignmentReport(scan=scan, dry_run=dry_run, result=batch)

        fallback = self.find_fallback_provider(target)
        logger.info(
            f"Reassigning {len(orphans)} service(s) to {fallback.business_name} ({fallback.user_id})"
            + (" [dry run]" if dry_run else "")
        )
        if dry_run:
            return ReassignmentReport(scan=scan, fallback=fallback, dry_run=True, result=batch)

        for orphan in orphans:
            try:
                self.db.update(
                    SERVICES_TABLE,
                    {"provider_id": fallback.user_id},
                    [f.eq("id", orphan.service_id)],
                )
            except RemoteRequestError as e:
                logger.error(f"Could not reassign {orphan.service_title}: {e.cause}")
                batch.record_failure(orphan.service_id, e.cause)
                continue
            batch.record_success(
                orphan.service_id, f"{orphan.service_title} -> {fallback.business_name}"
            )
        return ReassignmentReport(scan=scan, fallback=fallback, dry_run=False, result=batch)

    def archive_service(self, service_id: str, provider_id: str) -> Any:
        """Move a service into archived_services through the database function"""
        logger.info(f"Archiving service {service_id}")
        return self.db.call_remote_procedure(
            settings.archive_rpc_function,
            {"p_service_id": service_id, "p_user_id": provider_id},
        )
