from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from backend.auth.dependencies import get_catalog, get_current_user
from backend.models.rating import MAX_RATING, MIN_RATING
from backend.services.catalog import CatalogStore
from backend.services.ratings import StoreRatingSummary, compute_summary
from backend.services.views import Caller, rate_store

router = APIRouter(tags=['ratings'])


class SubmitRatingRequest(BaseModel):
    value: int = Field(ge=MIN_RATING, le=MAX_RATING)


class RatingResponse(BaseModel):
    id: int
    user_id: int
    store_id: int
    value: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class SubmitRatingResponse(BaseModel):
    rating: RatingResponse
    summary: StoreRatingSummary


@router.put('/{store_id}/rating', response_model=SubmitRatingResponse)
def submit_store_rating(
    store_id: int,
    data: SubmitRatingRequest,
    current_user: Caller = Depends(get_current_user),
    catalog: CatalogStore = Depends(get_catalog),
):
    rating = rate_store(catalog, current_user, store_id, data.value)

    # Summaries are never cached; recompute from a fresh read after the write.
    summary = compute_summary(store_id, catalog.list_ratings(store_id=store_id))
    return SubmitRatingResponse(
        rating=RatingResponse.model_validate(rating),
        summary=summary,
    )
