"""Per-store rating summaries and the rating upsert protocol.

Summaries are derived on every read from the raw rating rows and are never
cached, so an owner or admin always sees an average consistent with the last
write.
"""

import logging
from collections.abc import Iterable

from pydantic import BaseModel, computed_field

from backend.core.errors import ConflictError, ValidationError
from backend.models.rating import MAX_RATING, MIN_RATING, Rating
from backend.services.catalog import CatalogStore, RatingCandidate

logger = logging.getLogger(__name__)

DISPLAY_DECIMALS = 1


class StoreRatingSummary(BaseModel):
    store_id: int
    average: float
    count: int

    @computed_field
    @property
    def display_average(self) -> float:
        return round(self.average, DISPLAY_DECIMALS)


def compute_summary(store_id: int, ratings: Iterable[Rating]) -> StoreRatingSummary:
    values = [rating.value for rating in ratings if rating.store_id == store_id]
    count = len(values)
    average = sum(values) / count if count > 0 else 0.0
    return StoreRatingSummary(store_id=store_id, average=average, count=count)


def summarize_stores(store_ids: Iterable[int], ratings: Iterable[Rating]) -> dict[int, StoreRatingSummary]:
    grouped: dict[int, list[Rating]] = {store_id: [] for store_id in store_ids}
    for rating in ratings:
        if rating.store_id in grouped:
            grouped[rating.store_id].append(rating)

    return {store_id: compute_summary(store_id, rows) for store_id, rows in grouped.items()}


def find_user_rating(ratings: Iterable[Rating], user_id: int, store_id: int) -> Rating | None:
    for rating in ratings:
        if rating.user_id == user_id and rating.store_id == store_id:
            return rating
    return None


def validate_rating_value(value) -> int:
    # bool is an int subclass; True must not count as a 1-star rating
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError('Rating must be a whole number.', details={'value': value})
    if value < MIN_RATING or value > MAX_RATING:
        raise ValidationError(
            f'Rating must be between {MIN_RATING} and {MAX_RATING}.',
            details={'value': value},
        )
    return value


def submit_rating(catalog: CatalogStore, user_id: int, store_id: int, value) -> Rating:
    """Create the caller's rating for a store, or replace its value.

    The latest value always wins; there is no blending with the previous one.
    When a concurrent first submission wins the insert, the ``ConflictError``
    is absorbed by retrying once as an update.
    """
    value = validate_rating_value(value)

    existing = catalog.list_ratings(user_id=user_id, store_id=store_id)
    if existing:
        rating = catalog.update_rating(user_id, store_id, value)
        logger.info('Updated rating of store %s by user %s to %s.', store_id, user_id, value)
        return rating

    try:
        rating = catalog.insert_rating(RatingCandidate(user_id=user_id, store_id=store_id, value=value))
    except ConflictError:
        logger.warning('Rating for store %s by user %s appeared concurrently; retrying as update.', store_id, user_id)
        rating = catalog.update_rating(user_id, store_id, value)
        return rating

    logger.info('Created rating of store %s by user %s: %s.', store_id, user_id, value)
    return rating
