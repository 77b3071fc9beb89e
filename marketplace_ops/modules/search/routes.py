from fastapi import APIRouter, Depends, Query
from marketplace_ops.core.dependencies import get_data_access, require_super_user
from marketplace_ops.database.data_access import DataAccessClient
from marketplace_ops.modules.search.schemas import (
    SEARCHABLE_COLUMNS, SearchMode, SearchReport, SearchComparison, CategoryCount
)
from marketplace_ops.modules.search.service import SearchService
from typing import List, Dict

router = APIRouter(prefix="/search", tags=["search"])

DEFAULT_COLUMNS = ",".join(SEARCHABLE_COLUMNS)


def get_search_service(db: DataAccessClient = Depends(get_data_access)) -> SearchService:
    return SearchService(db)


@router.get("", response_model=SearchReport)
async def search_services(
    term: str = Query(..., min_length=1),
    mode: SearchMode = SearchMode.SINGLE_COLUMN,
    columns: str = "description",
    user_data: Dict = Depends(require_super_user),
    service: SearchService = Depends(get_search_service)
):
    """Run one filter form over active services; columns is comma separated"""
    return service.search(term, mode, columns.split(","))


@router.get("/compare", response_model=SearchComparison)
async def compare_search_modes(
    term: str = Query(..., min_length=1),
    columns: str = DEFAULT_COLUMNS,
    single_column: str = "description",
    user_data: Dict = Depends(require_super_user),
    service: SearchService = Depends(get_search_service)
):
    """Same term through single-column, OR and joined-column filters"""
    return service.compare_modes(term, columns.split(","), single_column=single_column)


@router.get("/categories", response_model=List[CategoryCount])
async def active_categories(
    limit: int = 10,
    user_data: Dict = Depends(require_super_user),
    service: SearchService = Depends(get_search_service)
):
    return service.active_category_breakdown(limit)
