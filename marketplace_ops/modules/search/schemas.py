from enum import Enum
from pydantic import BaseModel, computed_field
from typing import List, Optional

SEARCHABLE_COLUMNS = ("title", "category", "subcategory", "description")


class SearchMode(str, Enum):
    SINGLE_COLUMN = "single"    # ilike on one column
    ANY_COLUMN = "any"          # or=(col.ilike.x,...) across columns
    JOINED_COLUMNS = "joined"   # comma-joined column list passed to a single ilike


class ServiceSummary(BaseModel):
    id: str
    title: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    description: Optional[str] = None
    base_price: Optional[float] = None
    provider_id: Optional[str] = None
    active: Optional[bool] = None


class SearchReport(BaseModel):
    term: str
    mode: SearchMode
    columns: List[str]
    results: List[ServiceSummary] = []
    count: int = 0
    error: Optional[str] = None  # set when the remote rejected the filter (compare_modes only)

    @computed_field
    @property
    def consistent(self) -> bool:
        """The count-only query agrees with the rows returned"""
        return self.count == len(self.results)


class SearchComparison(BaseModel):
    term: str
    columns: List[str]
    reports: List[SearchReport]

    @computed_field
    @property
    def diverges(self) -> bool:
        return len({r.count for r in self.reports}) > 1


class CategoryCount(BaseModel):
    category: Optional[str] = None
    services: int
