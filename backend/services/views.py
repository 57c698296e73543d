"""Role-scoped projections of the catalog.

``build_view`` resolves the caller's role once and hands off to exactly one of
the three builders below. Each builder owns its authorization boundary: what
records it reads, which fields it exposes, and which mutations it allows.
The caller is always passed in explicitly.
"""

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from backend.core.errors import ForbiddenError, NotFoundError, ValidationError
from backend.models.rating import Rating
from backend.models.store import Store
from backend.models.user import User
from backend.services.catalog import CatalogStore, StoreCandidate, UserCandidate
from backend.services.ratings import (
    StoreRatingSummary,
    compute_summary,
    find_user_rating,
    submit_rating,
    summarize_stores,
)

Role = Literal['admin', 'user', 'owner']

USER_SEARCH_FIELDS = ('name', 'email', 'address', 'role')
ADMIN_STORE_SEARCH_FIELDS = ('name', 'address', 'email')
USER_STORE_SEARCH_FIELDS = ('name', 'address')

USER_SORT_FIELDS = ('name', 'email', 'address', 'role')
STORE_SORT_FIELDS = ('name', 'email', 'address', 'average')
USER_VIEW_SORT_FIELDS = ('name', 'address', 'average')


class Caller(BaseModel):
    id: int
    role: Role


class UserRow(BaseModel):
    id: int
    name: str
    email: str
    address: str
    role: str

    class Config:
        from_attributes = True


class AdminStoreRow(BaseModel):
    id: int
    name: str
    email: str | None = None
    address: str
    owner_id: int | None = None
    summary: StoreRatingSummary


class AdminTotals(BaseModel):
    total_users: int
    total_stores: int
    total_ratings: int


class AdminView(BaseModel):
    kind: Literal['admin'] = 'admin'
    totals: AdminTotals
    users: list[UserRow]
    stores: list[AdminStoreRow]
    owners: list[UserRow]


class OwnerStore(BaseModel):
    id: int
    name: str
    email: str | None = None
    address: str


class OwnerRatingRow(BaseModel):
    id: int
    value: int
    user_name: str
    user_email: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OwnerView(BaseModel):
    kind: Literal['owner'] = 'owner'
    status: Literal['assigned', 'no_store']
    store: OwnerStore | None = None
    summary: StoreRatingSummary | None = None
    ratings: list[OwnerRatingRow] = []


class UserStoreRow(BaseModel):
    id: int
    name: str
    address: str
    summary: StoreRatingSummary
    user_rating: int | None = None
    action: Literal['submit', 'update']


class UserView(BaseModel):
    kind: Literal['user'] = 'user'
    stores: list[UserStoreRow]


DashboardView = Annotated[Union[AdminView, OwnerView, UserView], Field(discriminator='kind')]


def matches_search(term: str | None, values: list[str | None]) -> bool:
    if not term or not term.strip():
        return True

    needle = term.strip().lower()
    return any(value is not None and needle in str(value).lower() for value in values)


def _field_values(record, fields: tuple[str, ...]) -> list[str | None]:
    return [getattr(record, field, None) for field in fields]


def _sort_rows(rows: list, sort_by: str | None, order: str, allowed: tuple[str, ...]) -> list:
    if sort_by is None:
        return rows
    if sort_by not in allowed:
        raise ValidationError('Unsupported sort field.', details={'sort_by': sort_by, 'allowed': list(allowed)})
    if order not in ('asc', 'desc'):
        raise ValidationError('Sort order must be asc or desc.', details={'order': order})

    def sort_key(row):
        if sort_by == 'average':
            return row.summary.average
        value = getattr(row, sort_by)
        return (value or '').lower()

    return sorted(rows, key=sort_key, reverse=order == 'desc')


def build_admin_view(
    catalog: CatalogStore,
    caller: Caller,
    user_search: str | None = None,
    store_search: str | None = None,
    sort_by: str | None = None,
    order: str = 'asc',
) -> AdminView:
    if caller.role != 'admin':
        raise ForbiddenError('Only administrators can view the admin dashboard.')

    users = catalog.list_users()
    stores = catalog.list_stores()
    ratings = catalog.list_ratings()
    summaries = summarize_stores([store.id for store in stores], ratings)

    user_rows = [
        UserRow.model_validate(user)
        for user in users
        if matches_search(user_search, _field_values(user, USER_SEARCH_FIELDS))
    ]
    store_rows = [
        AdminStoreRow(
            id=store.id,
            name=store.name,
            email=store.email,
            address=store.address,
            owner_id=store.owner_id,
            summary=summaries[store.id],
        )
        for store in stores
        if matches_search(store_search, _field_values(store, ADMIN_STORE_SEARCH_FIELDS))
    ]

    if sort_by is not None:
        if sort_by in USER_SORT_FIELDS:
            user_rows = _sort_rows(user_rows, sort_by, order, USER_SORT_FIELDS)
        if sort_by in STORE_SORT_FIELDS:
            store_rows = _sort_rows(store_rows, sort_by, order, STORE_SORT_FIELDS)
        if sort_by not in USER_SORT_FIELDS and sort_by not in STORE_SORT_FIELDS:
            raise ValidationError('Unsupported sort field.', details={'sort_by': sort_by})

    return AdminView(
        totals=AdminTotals(
            total_users=len(users),
            total_stores=len(stores),
            total_ratings=len(ratings),
        ),
        users=user_rows,
        stores=store_rows,
        owners=[UserRow.model_validate(user) for user in users if user.role == 'owner'],
    )


def _owner_rating_row(rating: Rating, author: User | None) -> OwnerRatingRow:
    return OwnerRatingRow(
        id=rating.id,
        value=rating.value,
        user_name=author.name if author else '',
        user_email=author.email if author else '',
        created_at=rating.created_at,
        updated_at=rating.updated_at,
    )


def build_owner_view(catalog: CatalogStore, caller: Caller) -> OwnerView:
    if caller.role != 'owner':
        raise ForbiddenError('Only store owners can view the owner dashboard.')

    try:
        store: Store = catalog.get_store_by_owner(caller.id)
    except NotFoundError:
        return OwnerView(status='no_store')

    ratings = [rating for rating in catalog.list_ratings(store_id=store.id) if rating.store_id == store.id]
    authors = {user.id: user for user in catalog.list_users()} if ratings else {}

    return OwnerView(
        status='assigned',
        store=OwnerStore(id=store.id, name=store.name, email=store.email, address=store.address),
        summary=compute_summary(store.id, ratings),
        ratings=[_owner_rating_row(rating, authors.get(rating.user_id)) for rating in ratings],
    )


def build_user_view(
    catalog: CatalogStore,
    caller: Caller,
    search: str | None = None,
    sort_by: str | None = None,
    order: str = 'asc',
) -> UserView:
    if caller.role != 'user':
        raise ForbiddenError('Only users can browse and rate stores.')

    stores = catalog.list_stores()
    ratings = catalog.list_ratings()
    summaries = summarize_stores([store.id for store in stores], ratings)

    rows: list[UserStoreRow] = []
    for store in stores:
        if not matches_search(search, _field_values(store, USER_STORE_SEARCH_FIELDS)):
            continue

        own = find_user_rating(ratings, caller.id, store.id)
        user_rating = own.value if own is not None else None
        rows.append(
            UserStoreRow(
                id=store.id,
                name=store.name,
                address=store.address,
                summary=summaries[store.id],
                user_rating=user_rating,
                action='update' if user_rating is not None else 'submit',
            )
        )

    return UserView(stores=_sort_rows(rows, sort_by, order, USER_VIEW_SORT_FIELDS))


def build_view(
    catalog: CatalogStore,
    caller: Caller,
    search: str | None = None,
    user_search: str | None = None,
    sort_by: str | None = None,
    order: str = 'asc',
) -> AdminView | OwnerView | UserView:
    """Return the projection for the caller's role.

    ``search`` filters stores (for admins and users); ``user_search`` filters
    the admin user list. Owners ignore both.
    """
    if caller.role == 'admin':
        return build_admin_view(
            catalog,
            caller,
            user_search=user_search,
            store_search=search,
            sort_by=sort_by,
            order=order,
        )
    if caller.role == 'owner':
        return build_owner_view(catalog, caller)
    if caller.role == 'user':
        return build_user_view(catalog, caller, search=search, sort_by=sort_by, order=order)
    raise ForbiddenError('Unknown role.', details={'role': caller.role})


def create_user(catalog: CatalogStore, caller: Caller, candidate: UserCandidate) -> User:
    if caller.role != 'admin':
        raise ForbiddenError('Only administrators can create users.')
    return catalog.insert_user(candidate)


def create_store(catalog: CatalogStore, caller: Caller, candidate: StoreCandidate) -> Store:
    if caller.role != 'admin':
        raise ForbiddenError('Only administrators can create stores.')
    return catalog.insert_store(candidate)


def rate_store(catalog: CatalogStore, caller: Caller, store_id: int, value) -> Rating:
    if caller.role != 'user':
        raise ForbiddenError('Only users can rate stores.')
    return submit_rating(catalog, caller.id, store_id, value)
