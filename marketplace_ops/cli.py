"""
CLI entrypoint for marketplace maintenance.

Each command runs one procedure against the Supabase project configured in
.env, prints a report and exits non-zero when anything failed.

Example:
    marketplace-ops fix-profile someone@example.com
    marketplace-ops reassign-orphans --business-name "Pippo Srl" --dry-run
"""
import logging
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import typer
import uvicorn

from marketplace_ops.config import settings
from marketplace_ops.core.exceptions import ConfirmationDeclined, MaintenanceError, NotFound
from marketplace_ops.core.results import BatchResult
from marketplace_ops.database.data_access import DataAccessClient
from marketplace_ops.database.supabase_client import SupabaseClient
from marketplace_ops.modules.catalog.schemas import FallbackTarget
from marketplace_ops.modules.catalog.service import CatalogService
from marketplace_ops.modules.cohorts.schemas import CohortFilter
from marketplace_ops.modules.cohorts.service import CohortService
from marketplace_ops.modules.inspection.service import InspectionService
from marketplace_ops.modules.maintenance.service import SqlMaintenanceService, split_statements
from marketplace_ops.modules.profiles.service import ProfileService
from marketplace_ops.modules.search.schemas import SEARCHABLE_COLUMNS, SearchMode, SearchReport
from marketplace_ops.modules.search.service import SearchService
from marketplace_ops.modules.users.schemas import UserRecord, UserSeed
from marketplace_ops.modules.users.service import UserService

app = typer.Typer(
    name="marketplace-ops",
    help="Maintenance tooling for the marketplace Supabase project",
    add_completion=False,
)

logger = logging.getLogger(__name__)


def data_access(privileged: bool = False) -> DataAccessClient:
    """Service role client for privileged commands, best available client otherwise"""
    if privileged:
        return DataAccessClient(SupabaseClient.get_service_client())
    return DataAccessClient(SupabaseClient.get_best_client())


def _fail(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _run(action: Callable):
    try:
        return action()
    except NotFound as e:
        _fail(f"Not found: {e}")
    except MaintenanceError as e:
        _fail(f"{type(e).__name__}: {e}")
    except ValueError as e:
        _fail(f"Invalid input: {e}")


def _print_batch(batch: BatchResult) -> None:
    for item in batch.items:
        if item.success:
            typer.echo(f"  ok    {item.key}" + (f"  ({item.detail})" if item.detail else ""))
        else:
            typer.echo(f"  FAIL  {item.key}: {item.error}")
    typer.echo(f"{batch.operation}: {batch.success_count} succeeded, {batch.failure_count} failed")


def _exit_for(batch: BatchResult) -> None:
    if not batch.ok:
        raise typer.Exit(code=1)


def _print_users(users: Sequence[UserRecord]) -> None:
    for index, user in enumerate(users, start=1):
        typer.echo(
            f"  {index}. {user.email} ({user.user_type}) id={user.id}"
            f" company={user.company_name or 'N/A'}"
        )


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
):
    logging.basicConfig(
        level=getattr(logging, (log_level or settings.log_level).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )


# Inspection

@app.command()
def summary():
    """Row counts of users, profiles and services tables."""
    counts = _run(lambda: InspectionService(data_access()).table_counts())
    for table, count in counts.counts.items():
        typer.echo(f"{table}: {count}")


@app.command()
def users(
    user_type: Optional[str] = typer.Option(None, "--type", help="client or provider"),
    limit: Optional[int] = typer.Option(None, "--limit", help="Maximum rows to list"),
):
    """List rows of the users table."""
    found = _run(lambda: UserService(data_access()).list_users(user_type=user_type, limit=limit))
    typer.echo(f"{len(found)} user(s)")
    _print_users(found)


@app.command()
def user(email: str = typer.Argument(..., help="Email of the user")):
    """Show a user row and its profile row."""
    overview = _run(lambda: InspectionService(data_access()).user_overview(email))
    u = overview.user
    typer.echo(f"User {u.email} id={u.id} type={u.user_type} created={u.created_at}")
    if overview.profile is None:
        typer.echo(f"No {overview.profile_table or 'profile'} row")
        return
    typer.echo(f"{overview.profile_table}:")
    for key in sorted(overview.profile):
        typer.echo(f"  {key}: {overview.profile[key]}")


@app.command()
def identities(
    page: int = typer.Option(1, "--page"),
    per_page: int = typer.Option(50, "--per-page"),
):
    """List auth identities (needs SUPABASE_SERVICE_ROLE_KEY)."""
    found = _run(lambda: InspectionService(data_access(privileged=True)).list_identities(page, per_page))
    typer.echo(f"{len(found)} identit{'y' if len(found) == 1 else 'ies'}")
    for identity in found:
        typer.echo(f"  {identity.email} id={identity.id} metadata={identity.user_metadata}")


# Reconciliation

@app.command("fix-profile")
def fix_profile(email: str = typer.Argument(..., help="Email of the user to repair")):
    """Create the missing client/provider profile row of one user."""
    result = _run(lambda: ProfileService(data_access()).ensure_profile_for_email(email))
    typer.echo(f"{result.email}: {result.status.value} ({result.profile_table})")
    if not result.success:
        _fail(result.error or "Profile repair failed")


@app.command("fix-missing-profiles")
def fix_missing_profiles(
    user_type: Optional[str] = typer.Option(None, "--type", help="Only client or provider users"),
    dry_run: bool = typer.Option(False, "--dry-run", help="List users without creating rows"),
):
    """Create profile rows for every user that lacks one."""
    service = ProfileService(_run(data_access))
    if dry_run:
        missing = _run(lambda: service.find_users_without_profiles(user_type))
        typer.echo(f"{len(missing)} user(s) without a profile row")
        _print_users(missing)
        return
    batch = _run(lambda: service.reconcile_all(user_type))
    _print_batch(batch)
    _exit_for(batch)


@app.command("ensure-user")
def ensure_user(
    user_id: str = typer.Option(..., "--id", help="Auth identity id"),
    email: str = typer.Option(..., "--email"),
    user_type: str = typer.Option(..., "--type", help="client or provider"),
    first_name: Optional[str] = typer.Option(None, "--first-name"),
    last_name: Optional[str] = typer.Option(None, "--last-name"),
    company_name: Optional[str] = typer.Option(None, "--company"),
    phone: str = typer.Option("", "--phone"),
):
    """Insert the users row of an auth identity that has none, then its profile."""
    def action():
        seed = UserSeed(
            id=user_id, email=email, user_type=user_type, first_name=first_name,
            last_name=last_name, company_name=company_name, phone=phone,
        )
        return ProfileService(data_access()).ensure_user_record(seed)

    result = _run(action)
    typer.echo(f"users row: {'created' if result.user_created else 'already present'}")
    typer.echo(f"profile: {result.profile.status.value} ({result.profile.profile_table})")
    if not result.profile.success:
        _fail(result.profile.error or "Profile repair failed")


@app.command()
def orphans(limit: Optional[int] = typer.Option(None, "--limit", help="Services to scan")):
    """Check which services point at a provider without a profile."""
    service = CatalogService(_run(data_access))
    report = _run(lambda: service.scan_service_providers(limit))
    for index, check in enumerate(report.checks, start=1):
        mark = "ok " if check.has_profile else "!! "
        typer.echo(f"{index}. {mark}{check.service_title}")
        typer.echo(f"     provider_id: {check.provider_id}  business: {check.business_name or 'NO PROFILE'}")
    typer.echo(f"Services without provider profile: {len(report.orphaned)} of {len(report.checks)}")
    without_provider = _run(service.count_services_without_provider)
    typer.echo(f"Services with no provider_id at all: {without_provider}")


@app.command("reassign-orphans")
def reassign_orphans(
    business_name: Optional[str] = typer.Option(None, "--business-name", help="Fallback provider business name"),
    user_id: Optional[str] = typer.Option(None, "--user-id", help="Fallback provider user id"),
    limit: Optional[int] = typer.Option(None, "--limit", help="Services to scan"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Resolve the fallback without updating"),
):
    """Point services without a provider profile at a fallback provider."""
    if not business_name and not user_id:
        business_name = settings.default_fallback_business_name

    def action():
        target = FallbackTarget(business_name=business_name, user_id=user_id)
        return CatalogService(data_access()).reassign_orphaned_services(target, limit=limit, dry_run=dry_run)

    report = _run(action)
    if not report.scan.orphaned:
        typer.echo("Every scanned service has a provider profile")
        return
    typer.echo(
        f"Fallback: {report.fallback.business_name} ({report.fallback.user_id}); "
        f"{len(report.scan.orphaned)} orphaned service(s)"
    )
    if report.dry_run:
        for orphan in report.scan.orphaned:
            typer.echo(f"  would reassign {orphan.service_title} ({orphan.service_id})")
        return
    _print_batch(report.result)
    _exit_for(report.result)


@app.command("archive-service")
def archive_service(
    service_id: str = typer.Argument(...),
    provider_id: str = typer.Argument(..., help="Owner of the service"),
):
    """Move a service into archived_services through the database function."""
    result = _run(lambda: CatalogService(data_access()).archive_service(service_id, provider_id))
    typer.echo(f"archive_service returned: {result}")


# Destructive maintenance

def prompt_confirmation(token: str) -> Callable[[Sequence[UserRecord]], bool]:
    def confirm(matched: Sequence[UserRecord]) -> bool:
        typer.secho(
            f"This deletes {len(matched)} user(s), their profile rows and their auth identities:",
            fg=typer.colors.YELLOW,
        )
        _print_users(matched)
        answer = typer.prompt(f'Type "{token}" to confirm')
        return answer.strip().upper() == token.upper()
    return confirm


@app.command("delete-cohort")
def delete_cohort(
    user_type: str = typer.Option("client", "--type", help="user_type of the cohort"),
    email_pattern: Optional[str] = typer.Option(None, "--email-pattern", help="ilike pattern, e.g. %@example.com"),
):
    """Delete every matching user's profile row and auth identity (needs the service role key)."""
    cohort = CohortFilter(user_type=user_type, email_pattern=email_pattern)
    confirm = prompt_confirmation(settings.deletion_confirmation_token)
    try:
        report = CohortService(data_access(privileged=True)).delete_cohort(cohort, confirm)
    except ConfirmationDeclined:
        typer.echo("Cancelled.")
        raise typer.Exit(code=1)
    except MaintenanceError as e:
        _fail(f"{type(e).__name__}: {e}")

    if not report.matched:
        typer.echo(f"No users match {report.cohort}")
        return
    typer.echo("Profile rows:")
    _print_batch(report.profiles)
    typer.echo("Auth identities:")
    _print_batch(report.identities)
    if report.remaining is not None:
        typer.echo(f"Users still matching {report.cohort}: {report.remaining}")
    if not (report.profiles.ok and report.identities.ok):
        raise typer.Exit(code=1)


# Search validation

def _print_search(report: SearchReport, show: int) -> None:
    typer.echo(
        f"[{report.mode.value}] {', '.join(report.columns)}: "
        f"{len(report.results)} row(s), count {report.count}"
    )
    if report.error:
        typer.echo(f"  rejected: {report.error}")
    for index, service in enumerate(report.results[:show], start=1):
        typer.echo(f"  {index}. {service.title} [{service.category} / {service.subcategory or 'N/A'}]")
    if len(report.results) > show:
        typer.echo(f"  ... and {len(report.results) - show} more")


@app.command()
def search(
    term: str = typer.Argument(..., help="Search term, matched as %term%"),
    mode: SearchMode = typer.Option(SearchMode.SINGLE_COLUMN, "--mode"),
    columns: List[str] = typer.Option(["description"], "--column", help="Repeat for several columns"),
    show: int = typer.Option(10, "--show", help="Rows to print"),
):
    """Run one search filter form over active services."""
    report = _run(lambda: SearchService(data_access()).search(term, mode, columns))
    _print_search(report, show)
    if not report.consistent:
        _fail("Count query disagrees with the rows returned")


@app.command("compare-search")
def compare_search(
    term: str = typer.Argument(...),
    columns: List[str] = typer.Option(list(SEARCHABLE_COLUMNS), "--column"),
    single_column: str = typer.Option("description", "--single-column"),
    show: int = typer.Option(5, "--show"),
):
    """Compare single-column, OR and joined-column filters for the same term."""
    comparison = _run(lambda: SearchService(data_access()).compare_modes(term, columns, single_column))
    for report in comparison.reports:
        _print_search(report, show)
    typer.echo("Modes diverge" if comparison.diverges else "Modes agree")


@app.command()
def categories(limit: int = typer.Option(10, "--limit")):
    """Active services per category."""
    rows = _run(lambda: SearchService(data_access()).active_category_breakdown(limit))
    for row in rows:
        typer.echo(f"  {row.category}: {row.services}")


# SQL through RPC

@app.command()
def sql(
    statement: Optional[str] = typer.Argument(None, help="SQL to execute"),
    file: Optional[Path] = typer.Option(None, "--file", exists=True, dir_okay=False, help="Script sent as one call"),
    split: bool = typer.Option(False, "--split", help="Run the script's statements one by one"),
    pause: Optional[float] = typer.Option(None, "--pause", help="Seconds between statements"),
):
    """Execute SQL through the project's exec_sql function (needs the service role key)."""
    if not statement and not file:
        _fail("Give a statement or --file")
    service = SqlMaintenanceService(_run(lambda: data_access(privileged=True)))
    script = statement or file.read_text(encoding="utf-8")
    if statement or not split:
        result = _run(lambda: service.execute_sql(script))
        typer.echo(f"ok: {result}")
        return
    statements = _run(lambda: split_statements(script))
    batch = _run(lambda: service.run_statements(statements, pause))
    _print_batch(batch)
    _exit_for(batch)


@app.command("add-column")
def add_column(
    table: str = typer.Argument(...),
    column: str = typer.Argument(...),
    column_type: str = typer.Argument(..., help="e.g. 'VARCHAR(100)'"),
):
    """ALTER TABLE ... ADD COLUMN IF NOT EXISTS through exec_sql."""
    _run(lambda: SqlMaintenanceService(data_access(privileged=True)).add_column_if_missing(table, column, column_type))
    typer.echo(f"{table}.{column} present")


# HTTP API

@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
    reload: bool = typer.Option(False, "--reload"),
):
    """Run the maintenance HTTP API."""
    uvicorn.run("marketplace_ops.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
