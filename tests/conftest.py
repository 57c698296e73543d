import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from backend.database import Base  # noqa: E402
from backend.models.rating import Rating  # noqa: E402
from backend.models.store import Store  # noqa: E402
from backend.models.user import User  # noqa: E402
from backend.services.catalog import CatalogStore, StoreCandidate, UserCandidate  # noqa: E402


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine, tables=[User.__table__, Store.__table__, Rating.__table__])
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine, tables=[Rating.__table__, Store.__table__, User.__table__])
        engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def catalog_db(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def catalog(catalog_db) -> CatalogStore:
    return CatalogStore(catalog_db)


@pytest.fixture
def make_user(catalog):
    counter = {'n': 0}

    def _make_user(role: str = 'user', name: str | None = None, email: str | None = None, address: str = '1 Main Street') -> User:
        counter['n'] += 1
        return catalog.insert_user(
            UserCandidate(
                name=name or f'Test Person Number {counter["n"]:04d}',
                email=email or f'{role}{counter["n"]}@example.com',
                address=address,
                role=role,
            )
        )

    return _make_user


@pytest.fixture
def make_store(catalog):
    counter = {'n': 0}

    def _make_store(name: str | None = None, address: str = '1 Oak', email: str | None = None, owner_id: int | None = None) -> Store:
        counter['n'] += 1
        return catalog.insert_store(
            StoreCandidate(
                name=name or f'Store {counter["n"]}',
                email=email or f'store{counter["n"]}@example.com',
                address=address,
                owner_id=owner_id,
            )
        )

    return _make_store
