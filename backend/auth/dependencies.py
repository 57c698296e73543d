import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from backend.auth import jwt_handler
from backend.core.errors import NotFoundError
from backend.database import get_db
from backend.services.catalog import CatalogStore
from backend.services.views import Caller

security = HTTPBearer()


def get_catalog(db: Session = Depends(get_db)) -> CatalogStore:
    return CatalogStore(db)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    catalog: CatalogStore = Depends(get_catalog),
) -> Caller:
    token = credentials.credentials
    try:
        payload = jwt_handler.decode_access_token(token)
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc

    subject = payload.get("sub")
    if not subject or not str(subject).isdigit():
        raise HTTPException(status_code=401, detail="Invalid token subject")

    # The role always comes from the stored record, never from the token.
    try:
        user = catalog.get_user_by_id(int(subject))
    except NotFoundError as exc:
        raise HTTPException(status_code=401, detail="User not found") from exc
    return Caller(id=user.id, role=user.role)
