import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from backend.core import config
from backend.core.errors import RatingsError
from backend.database import Base, engine, ensure_rating_schema
from backend.models import rating, store, user  # noqa: F401  registers tables on Base
from backend.routes import admin_routes, auth_routes, dashboard_routes, rating_routes

logging.basicConfig(level=config.LOG_LEVEL)

app = FastAPI(title='Store Ratings API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
        ensure_rating_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.exception_handler(RatingsError)
async def handle_ratings_error(request: Request, exc: RatingsError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error('%s %s failed: %s', request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.get('/')
def root():
    return {'status': 'Store Ratings API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(dashboard_routes.router, prefix='/dashboard')
app.include_router(admin_routes.router, prefix='/admin')
app.include_router(rating_routes.router, prefix='/stores')
