import pytest

from backend.core import config
from backend.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    RatingsError,
    UnavailableError,
    ValidationError,
)


@pytest.mark.parametrize(
    ('error_class', 'code', 'status_code'),
    [
        (ValidationError, 'VALIDATION_ERROR', 400),
        (ForbiddenError, 'FORBIDDEN', 403),
        (NotFoundError, 'NOT_FOUND', 404),
        (ConflictError, 'CONFLICT', 409),
        (UnavailableError, 'UNAVAILABLE', 503),
    ],
)
def test_error_kinds_carry_code_and_status(error_class, code: str, status_code: int) -> None:
    error = error_class()

    assert isinstance(error, RatingsError)
    assert error.code == code
    assert error.status_code == status_code
    assert error.message == error_class.default_message


def test_to_payload_includes_details_and_trace_id() -> None:
    payload = NotFoundError('Store not found.', details={'store_id': 3}).to_payload()

    assert payload['error']['code'] == 'NOT_FOUND'
    assert payload['error']['message'] == 'Store not found.'
    assert payload['error']['details'] == {'store_id': 3}
    assert payload['error']['trace_id'].startswith('req_')
    assert len(payload['error']['trace_id']) == len('req_') + 12


def test_validate_runtime_config_rejects_default_secret_in_production(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'APP_ENV', 'production')
    monkeypatch.setattr(config, 'JWT_SECRET_KEY', 'change-me')

    with pytest.raises(RuntimeError):
        config.validate_runtime_config()

    monkeypatch.setattr(config, 'JWT_SECRET_KEY', 'a-real-secret')
    config.validate_runtime_config()


@pytest.mark.parametrize(
    ('raw', 'expected'),
    [
        (None, ['http://localhost:4200']),
        ('https://a.example.com, https://b.example.com', ['https://a.example.com', 'https://b.example.com']),
        (' , ', []),
    ],
)
def test_get_list_splits_comma_separated_values(raw, expected: list[str]) -> None:
    assert config._get_list(raw, default=['http://localhost:4200']) == expected
