"""SQLAlchemy-backed catalog of users, stores and ratings.

``CatalogStore`` is the only place that talks to the database. Each write
commits one record in its own transaction and rolls back on failure, so a
reader never observes a half-applied change. Database errors other than
integrity violations are reported as ``UnavailableError``.
"""

import logging
from datetime import datetime, timezone

from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.core.errors import ConflictError, NotFoundError, UnavailableError, ValidationError
from backend.models.rating import Rating
from backend.models.store import Store
from backend.models.user import ROLES, User

logger = logging.getLogger(__name__)


class UserCandidate(BaseModel):
    name: str
    email: str
    address: str = ''
    role: str = 'user'


class StoreCandidate(BaseModel):
    name: str
    email: str | None = None
    address: str = ''
    owner_id: int | None = None


class RatingCandidate(BaseModel):
    user_id: int
    store_id: int
    value: int


def _require(fields: dict[str, str | None]) -> None:
    missing = [name for name, value in fields.items() if value is None or not value.strip()]
    if missing:
        raise ValidationError('Required fields are missing.', details={'missing': missing})


class CatalogStore:
    def __init__(self, db: Session):
        self.db = db

    def _read(self, query):
        try:
            return query.all()
        except SQLAlchemyError as exc:
            logger.exception('Catalog read failed.')
            raise UnavailableError() from exc

    def _first(self, query):
        try:
            return query.first()
        except SQLAlchemyError as exc:
            logger.exception('Catalog read failed.')
            raise UnavailableError() from exc

    def _commit(self, record, conflict: ConflictError):
        try:
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        except IntegrityError as exc:
            self.db.rollback()
            raise conflict from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception('Catalog write failed.')
            raise UnavailableError() from exc
        return record

    def list_users(self) -> list[User]:
        return self._read(self.db.query(User).order_by(User.id.asc()))

    def list_stores(self) -> list[Store]:
        return self._read(self.db.query(Store).order_by(Store.id.asc()))

    def list_ratings(self, store_id: int | None = None, user_id: int | None = None) -> list[Rating]:
        query = self.db.query(Rating)
        if store_id is not None:
            query = query.filter(Rating.store_id == store_id)
        if user_id is not None:
            query = query.filter(Rating.user_id == user_id)
        return self._read(query.order_by(Rating.id.asc()))

    def get_user_by_id(self, user_id: int) -> User:
        user = self._first(self.db.query(User).filter(User.id == user_id))
        if user is None:
            raise NotFoundError('User not found.', details={'user_id': user_id})
        return user

    def _find_user_by_email(self, email: str) -> User | None:
        return self._first(self.db.query(User).filter(func.lower(User.email) == email))

    def get_user_by_email(self, email: str) -> User:
        normalized = email.strip().lower()
        user = self._find_user_by_email(normalized)
        if user is None:
            raise NotFoundError('User not found.', details={'email': normalized})
        return user

    def get_store_by_id(self, store_id: int) -> Store:
        store = self._first(self.db.query(Store).filter(Store.id == store_id))
        if store is None:
            raise NotFoundError('Store not found.', details={'store_id': store_id})
        return store

    def get_store_by_owner(self, owner_id: int) -> Store:
        store = self._first(
            self.db.query(Store).filter(Store.owner_id == owner_id).order_by(Store.id.asc())
        )
        if store is None:
            raise NotFoundError('No store is assigned to this owner.', details={'owner_id': owner_id})
        return store

    def insert_user(self, candidate: UserCandidate) -> User:
        _require({'name': candidate.name, 'email': candidate.email})

        role = candidate.role.strip().lower()
        if role not in ROLES:
            raise ValidationError('Invalid role.', details={'role': candidate.role})

        email = candidate.email.strip().lower()
        conflict = ConflictError('Email already registered.', details={'email': email})
        if self._find_user_by_email(email) is not None:
            raise conflict

        user = User(
            name=candidate.name.strip(),
            email=email,
            address=(candidate.address or '').strip(),
            role=role,
        )
        self._commit(user, conflict)
        logger.info('Created user %s with role %s.', user.id, user.role)
        return user

    def insert_store(self, candidate: StoreCandidate) -> Store:
        _require({'name': candidate.name, 'address': candidate.address})

        if candidate.owner_id is not None:
            owner = self._first(self.db.query(User).filter(User.id == candidate.owner_id))
            if owner is None or owner.role != 'owner':
                raise ValidationError(
                    'owner_id must reference a store owner.',
                    details={'owner_id': candidate.owner_id},
                )
            assigned = self._first(self.db.query(Store).filter(Store.owner_id == candidate.owner_id))
            if assigned is not None:
                raise ConflictError(
                    'This owner already has a store assigned.',
                    details={'owner_id': candidate.owner_id, 'store_id': assigned.id},
                )

        email = candidate.email.strip().lower() if candidate.email and candidate.email.strip() else None
        store = Store(
            name=candidate.name.strip(),
            email=email,
            address=candidate.address.strip(),
            owner_id=candidate.owner_id,
        )
        self._commit(store, ConflictError('Store could not be created.'))
        logger.info('Created store %s (owner %s).', store.id, store.owner_id)
        return store

    def insert_rating(self, candidate: RatingCandidate) -> Rating:
        self.get_user_by_id(candidate.user_id)
        self.get_store_by_id(candidate.store_id)

        conflict = ConflictError(
            'A rating for this store already exists; update it instead.',
            details={'user_id': candidate.user_id, 'store_id': candidate.store_id},
        )
        rating = Rating(user_id=candidate.user_id, store_id=candidate.store_id, value=candidate.value)
        return self._commit(rating, conflict)

    def update_rating(self, user_id: int, store_id: int, new_value: int) -> Rating:
        rating = self._first(
            self.db.query(Rating).filter(Rating.user_id == user_id, Rating.store_id == store_id)
        )
        if rating is None:
            raise NotFoundError(
                'No rating to update.',
                details={'user_id': user_id, 'store_id': store_id},
            )

        rating.value = new_value
        rating.updated_at = datetime.now(timezone.utc)
        return self._commit(rating, ConflictError('Rating could not be updated.'))
