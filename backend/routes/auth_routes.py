from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, field_validator

from backend.auth import jwt_handler
from backend.auth.dependencies import get_catalog, get_current_user
from backend.services.catalog import CatalogStore, UserCandidate
from backend.services.views import Caller

router = APIRouter(tags=['auth'])

MAX_NAME_LENGTH = 60
MAX_ADDRESS_LENGTH = 400


class SignupRequest(BaseModel):
    name: str
    email: EmailStr
    address: str = ''

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name is required.')
        if len(normalized) > MAX_NAME_LENGTH:
            raise ValueError(f'Name must be {MAX_NAME_LENGTH} characters or fewer.')
        return normalized

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator('address')
    @classmethod
    def validate_address(cls, value: str) -> str:
        normalized = value.strip()
        if len(normalized) > MAX_ADDRESS_LENGTH:
            raise ValueError(f'Address must be {MAX_ADDRESS_LENGTH} characters or fewer.')
        return normalized


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = 'bearer'
    user_id: int
    role: str


class MeResponse(BaseModel):
    id: int
    name: str
    email: str
    address: str
    role: str


@router.post('/signup', response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def signup(data: SignupRequest, catalog: CatalogStore = Depends(get_catalog)):
    # Self sign-up always yields a regular user; other roles are created by an admin.
    user = catalog.insert_user(
        UserCandidate(name=data.name, email=data.email, address=data.address, role='user')
    )
    token = jwt_handler.create_access_token(user_id=user.id, role=user.role)
    return TokenResponse(access_token=token, user_id=user.id, role=user.role)


@router.get('/me', response_model=MeResponse)
def me(
    current_user: Caller = Depends(get_current_user),
    catalog: CatalogStore = Depends(get_catalog),
):
    user = catalog.get_user_by_id(current_user.id)
    return MeResponse(id=user.id, name=user.name, email=user.email, address=user.address, role=user.role)
