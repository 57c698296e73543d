import pytest

from backend import issue_token
from backend.auth import jwt_handler
from backend.core.errors import NotFoundError


def test_issue_token_for_existing_user(catalog, make_user) -> None:
    user = make_user(role='owner', email='owner@example.com')
    args = issue_token.build_parser().parse_args(['--email', ' OWNER@example.com '])

    token = issue_token.issue_token(catalog, args)

    payload = jwt_handler.decode_access_token(token)
    assert payload['sub'] == str(user.id)
    assert payload['role'] == 'owner'


def test_issue_token_can_bootstrap_admin(catalog) -> None:
    args = issue_token.build_parser().parse_args(
        ['--email', 'admin@example.com', '--create-admin', '--name', 'Default Administrator Account']
    )

    token = issue_token.issue_token(catalog, args)

    admin = catalog.get_user_by_email('admin@example.com')
    assert admin.role == 'admin'
    assert jwt_handler.decode_access_token(token)['sub'] == str(admin.id)


def test_issue_token_for_unknown_user_raises(catalog) -> None:
    args = issue_token.build_parser().parse_args(['--email', 'ghost@example.com'])

    with pytest.raises(NotFoundError):
        issue_token.issue_token(catalog, args)
