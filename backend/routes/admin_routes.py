from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, field_validator

from backend.auth.dependencies import get_catalog, get_current_user
from backend.models.user import ROLES
from backend.services.catalog import CatalogStore, StoreCandidate, UserCandidate
from backend.services.views import Caller, create_store, create_user

router = APIRouter(tags=['admin'])

MIN_ADMIN_CREATED_NAME_LENGTH = 20
MAX_NAME_LENGTH = 60
MAX_ADDRESS_LENGTH = 400


def _validate_address(value: str) -> str:
    normalized = value.strip()
    if len(normalized) > MAX_ADDRESS_LENGTH:
        raise ValueError(f'Address must be {MAX_ADDRESS_LENGTH} characters or fewer.')
    return normalized


class CreateUserRequest(BaseModel):
    name: str
    email: EmailStr
    address: str
    role: str = 'user'

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not MIN_ADMIN_CREATED_NAME_LENGTH <= len(normalized) <= MAX_NAME_LENGTH:
            raise ValueError(
                f'Name must be between {MIN_ADMIN_CREATED_NAME_LENGTH} and {MAX_NAME_LENGTH} characters.'
            )
        return normalized

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator('address')
    @classmethod
    def validate_address(cls, value: str) -> str:
        return _validate_address(value)

    @field_validator('role')
    @classmethod
    def validate_role(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in ROLES:
            raise ValueError('Invalid role.')
        return normalized


class CreateStoreRequest(BaseModel):
    name: str
    email: EmailStr
    address: str
    owner_id: int | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Store name is required.')
        return normalized

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator('address')
    @classmethod
    def validate_address(cls, value: str) -> str:
        normalized = _validate_address(value)
        if not normalized:
            raise ValueError('Store address is required.')
        return normalized


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    address: str
    role: str

    class Config:
        from_attributes = True


class StoreResponse(BaseModel):
    id: int
    name: str
    email: str | None = None
    address: str
    owner_id: int | None = None

    class Config:
        from_attributes = True


@router.post('/users', response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def admin_create_user(
    data: CreateUserRequest,
    current_user: Caller = Depends(get_current_user),
    catalog: CatalogStore = Depends(get_catalog),
):
    return create_user(
        catalog,
        current_user,
        UserCandidate(name=data.name, email=data.email, address=data.address, role=data.role),
    )


@router.post('/stores', response_model=StoreResponse, status_code=status.HTTP_201_CREATED)
def admin_create_store(
    data: CreateStoreRequest,
    current_user: Caller = Depends(get_current_user),
    catalog: CatalogStore = Depends(get_catalog),
):
    return create_store(
        catalog,
        current_user,
        StoreCandidate(name=data.name, email=data.email, address=data.address, owner_id=data.owner_id),
    )
