from collections import Counter
from typing import List, Optional, Sequence
import logging

from marketplace_ops.core.exceptions import RemoteRequestError
from marketplace_ops.database.data_access import DataAccessClient
from marketplace_ops.database import filters as f
from marketplace_ops.modules.catalog.models import SERVICES_TABLE
from marketplace_ops.modules.search.schemas import (
    SEARCHABLE_COLUMNS, SearchMode, ServiceSummary, SearchReport,
    SearchComparison, CategoryCount
)

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = "id, title, description, category, subcategory, base_price, provider_id, active"


def _validate_columns(columns: Sequence[str]) -> List[str]:
    columns = [c.strip() for c in columns if c and c.strip()]
    if not columns:
        raise ValueError("At least one column is required")
    unknown = [c for c in columns if c not in SEARCHABLE_COLUMNS]
    if unknown:
        raise ValueError(
            f"Unsupported search column(s): {', '.join(unknown)}; "
            f"expected one of {', '.join(SEARCHABLE_COLUMNS)}"
        )
    return columns


class SearchService:
    """Reproduces the marketplace's service search to check which rows each filter form returns.

    Every mode applies active = true and a case-insensitive substring match.
    """

    def __init__(self, db: DataAccessClient):
        self.db = db

    def build_conditions(self, term: str, mode: SearchMode, columns: Sequence[str]) -> List[f.Condition]:
        columns = _validate_columns(columns)
        pattern = f.contains(term)
        conditions: List[f.Condition] = [f.eq("active", True)]
        if mode == SearchMode.SINGLE_COLUMN:
            if len(columns) != 1:
                raise ValueError("Single-column search takes exactly one column")
            conditions.append(f.ilike(columns[0], pattern))
        elif mode == SearchMode.ANY_COLUMN:
            conditions.append(f.any_of(*(f.ilike(c, pattern) for c in columns)))
        else:
            # What the search page used to send: PostgREST reads the joined
            # list as one column name, not as an OR across columns.
            conditions.append(f.ilike(",".join(columns), pattern))
        return conditions

    def search(self, term: str, mode: SearchMode, columns: Sequence[str]) -> SearchReport:
        columns = _validate_columns(columns)
        conditions = self.build_conditions(term, mode, columns)
        rows = self.db.select(SERVICES_TABLE, SUMMARY_COLUMNS, conditions)
        count = self.db.count(SERVICES_TABLE, conditions)
        report = SearchReport(
            term=term,
            mode=mode,
            columns=columns,
            results=[ServiceSummary(**row) for row in rows],
            count=count,
        )
        logger.info(
            f"Search {term!r} ({mode.value} on {', '.join(columns)}): "
            f"{len(report.results)} row(s), count {count}"
        )
        return report

    def search_single_column(self, term: str, column: str = "description") -> SearchReport:
        return self.search(term, SearchMode.SINGLE_COLUMN, [column])

    def search_any_column(self, term: str, columns: Sequence[str] = SEARCHABLE_COLUMNS) -> SearchReport:
        return self.search(term, SearchMode.ANY_COLUMN, columns)

    def search_joined_columns(self, term: str, columns: Sequence[str] = SEARCHABLE_COLUMNS) -> SearchReport:
        return self.search(term, SearchMode.JOINED_COLUMNS, columns)

    def count_matches(self, term: str, mode: SearchMode, columns: Sequence[str]) -> int:
        return self.db.count(SERVICES_TABLE, self.build_conditions(term, mode, columns))

    def compare_modes(
        self,
        term: str,
        columns: Sequence[str] = SEARCHABLE_COLUMNS,
        single_column: str = "description",
        include_joined: bool = True,
    ) -> SearchComparison:
        """Run the same term through each filter form side by side"""
        columns = _validate_columns(columns)
        reports = [
            self.search_single_column(term, single_column),
            self.search_any_column(term, columns),
        ]
        if include_joined:
            try:
                reports.append(self.search_joined_columns(term, columns))
            except RemoteRequestError as e:
                logger.warning(f"Joined-column search rejected: {e.cause}")
                reports.append(SearchReport(
                    term=term,
                    mode=SearchMode.JOINED_COLUMNS,
                    columns=columns,
                    error=str(e.cause),
                ))
        return SearchComparison(term=term, columns=columns, reports=reports)

    def active_category_breakdown(self, limit: Optional[int] = 10) -> List[CategoryCount]:
        rows = self.db.select(SERVICES_TABLE, "id, category", [f.eq("active", True)])
        counts = Counter(row.get("category") for row in rows)
        ordered = [CategoryCount(category=c, services=n) for c, n in counts.most_common()]
        return ordered[:limit] if limit else ordered
