import pytest
from fastapi.testclient import TestClient

from backend.auth import jwt_handler
from backend.database import get_db
from backend.main import app
from backend.services.catalog import CatalogStore, StoreCandidate, UserCandidate


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def seeded(catalog_db):
    catalog = CatalogStore(catalog_db)
    admin = catalog.insert_user(UserCandidate(name='Default Administrator Account', email='admin@example.com', role='admin'))
    owner = catalog.insert_user(UserCandidate(name='Store Owner With Long Name', email='owner@example.com', role='owner'))
    user = catalog.insert_user(UserCandidate(name='Regular User', email='user@example.com', role='user'))
    store = catalog.insert_store(
        StoreCandidate(name='Westside Mart', email='west@example.com', address='1 Oak', owner_id=owner.id)
    )
    return {'admin': admin.id, 'owner': owner.id, 'user': user.id, 'store': store.id}


def _auth(user_id: int, role: str) -> dict:
    return {'Authorization': f'Bearer {jwt_handler.create_access_token(user_id=user_id, role=role)}'}


def test_root_reports_status(client) -> None:
    assert client.get('/').json() == {'status': 'Store Ratings API Running'}


def test_dashboard_requires_bearer_token(client) -> None:
    response = client.get('/dashboard')

    assert response.status_code in (401, 403)


def test_rating_flow_updates_owner_dashboard(client, seeded) -> None:
    user_headers = _auth(seeded['user'], 'user')

    before = client.get('/dashboard', headers=user_headers).json()
    assert before['kind'] == 'user'
    assert before['stores'][0]['user_rating'] is None
    assert before['stores'][0]['action'] == 'submit'
    assert 'email' not in before['stores'][0]

    first = client.put(f"/stores/{seeded['store']}/rating", json={'value': 3}, headers=user_headers)
    assert first.status_code == 200
    second = client.put(f"/stores/{seeded['store']}/rating", json={'value': 5}, headers=user_headers)
    assert second.status_code == 200
    assert second.json()['rating']['id'] == first.json()['rating']['id']
    assert second.json()['summary'] == {'store_id': seeded['store'], 'average': 5.0, 'count': 1, 'display_average': 5.0}

    after = client.get('/dashboard', headers=user_headers).json()
    assert after['stores'][0]['user_rating'] == 5
    assert after['stores'][0]['action'] == 'update'

    owner_view = client.get('/dashboard', headers=_auth(seeded['owner'], 'owner')).json()
    assert owner_view['kind'] == 'owner'
    assert owner_view['status'] == 'assigned'
    assert [row['value'] for row in owner_view['ratings']] == [5]
    assert owner_view['ratings'][0]['user_email'] == 'user@example.com'


def test_out_of_range_rating_is_rejected(client, seeded) -> None:
    response = client.put(
        f"/stores/{seeded['store']}/rating",
        json={'value': 6},
        headers=_auth(seeded['user'], 'user'),
    )

    assert response.status_code == 422


def test_rating_unknown_store_returns_not_found_payload(client, seeded) -> None:
    response = client.put('/stores/999/rating', json={'value': 4}, headers=_auth(seeded['user'], 'user'))

    assert response.status_code == 404
    error = response.json()['error']
    assert error['code'] == 'NOT_FOUND'
    assert error['details'] == {'store_id': 999}
    assert error['trace_id'].startswith('req_')


def test_owner_cannot_rate(client, seeded) -> None:
    response = client.put(
        f"/stores/{seeded['store']}/rating",
        json={'value': 4},
        headers=_auth(seeded['owner'], 'owner'),
    )

    assert response.status_code == 403
    assert response.json()['error']['code'] == 'FORBIDDEN'


def test_admin_creates_user_and_sees_totals(client, seeded) -> None:
    admin_headers = _auth(seeded['admin'], 'admin')

    created = client.post(
        '/admin/users',
        json={'name': 'Another Store Owner Here', 'email': 'Second.Owner@example.com', 'address': '9 Ash', 'role': 'owner'},
        headers=admin_headers,
    )
    assert created.status_code == 201
    assert created.json()['email'] == 'second.owner@example.com'

    duplicate = client.post(
        '/admin/users',
        json={'name': 'Another Store Owner Here', 'email': 'second.owner@example.com', 'address': '9 Ash', 'role': 'owner'},
        headers=admin_headers,
    )
    assert duplicate.status_code == 409
    assert duplicate.json()['error']['code'] == 'CONFLICT'

    view = client.get('/dashboard', params={'user_search': 'owner'}, headers=admin_headers).json()
    assert view['kind'] == 'admin'
    assert view['totals'] == {'total_users': 4, 'total_stores': 1, 'total_ratings': 0}
    assert {row['email'] for row in view['users']} == {'owner@example.com', 'second.owner@example.com'}


def test_admin_store_creation_enforces_one_store_per_owner(client, seeded) -> None:
    response = client.post(
        '/admin/stores',
        json={'name': 'Second Shop', 'email': 'second@example.com', 'address': '2 Elm', 'owner_id': seeded['owner']},
        headers=_auth(seeded['admin'], 'admin'),
    )

    assert response.status_code == 409


def test_owner_without_store_sees_no_store_state(client, seeded, catalog_db) -> None:
    lonely = CatalogStore(catalog_db).insert_user(
        UserCandidate(name='Owner Without Any Store', email='lonely@example.com', role='owner')
    )

    response = client.get('/dashboard', headers=_auth(lonely.id, 'owner'))

    assert response.status_code == 200
    assert response.json()['status'] == 'no_store'
    assert response.json()['store'] is None


def test_signup_then_me(client) -> None:
    signup = client.post('/auth/signup', json={'name': 'Jamie', 'email': 'jamie@example.com', 'address': '5 Birch'})
    assert signup.status_code == 201

    token = signup.json()['access_token']
    me = client.get('/auth/me', headers={'Authorization': f'Bearer {token}'})

    assert me.status_code == 200
    assert me.json()['role'] == 'user'
