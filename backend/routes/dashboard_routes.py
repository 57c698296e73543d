from fastapi import APIRouter, Depends, Query

from backend.auth.dependencies import get_catalog, get_current_user
from backend.services.catalog import CatalogStore
from backend.services.views import Caller, DashboardView, build_view

router = APIRouter(tags=['dashboard'])


@router.get('', response_model=DashboardView)
def get_dashboard(
    search: str | None = Query(default=None, max_length=200),
    user_search: str | None = Query(default=None, max_length=200),
    sort_by: str | None = Query(default=None),
    order: str = Query(default='asc', pattern='^(asc|desc)$'),
    current_user: Caller = Depends(get_current_user),
    catalog: CatalogStore = Depends(get_catalog),
):
    return build_view(
        catalog,
        current_user,
        search=search,
        user_search=user_search,
        sort_by=sort_by,
        order=order,
    )
