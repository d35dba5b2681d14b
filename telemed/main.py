import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from telemed.auth import jwt_handler
from telemed.auth.guard import RouteGuard
from telemed.core import config
from telemed.core.cache import TTLCache
from telemed.core.errors import UpstreamQueryError, ValidationError
from telemed.database import create_tables, ensure_lookup_indexes
from telemed.routes import (
    appointment_routes,
    audit_routes,
    auth_routes,
    directory_routes,
    init_routes,
    schedule_routes,
    video_routes,
)

logging.basicConfig(level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO))

app = FastAPI(title='Telemed API')

app.state.cache = TTLCache(
    default_ttl_seconds=config.DOCTOR_CACHE_TTL_SECONDS,
    max_size=config.DOCTOR_CACHE_MAX_SIZE,
)
app.state.route_guard = RouteGuard()

logger = logging.getLogger(__name__)


@app.middleware('http')
async def enforce_route_guard(request: Request, call_next):
    if request.method == 'OPTIONS':
        return await call_next(request)

    claims = jwt_handler.read_session_claims(
        request.headers.get('authorization'),
        request.cookies.get('session'),
    )
    decision = request.app.state.route_guard.evaluate(request.url.path, claims)
    if not decision.allowed:
        return JSONResponse(status_code=decision.status_code, content={'error': decision.error})
    return await call_next(request)


# Added after the guard so CORS wraps it and guard denials carry CORS headers.
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={'error': exc.detail}, headers=exc.headers)


@app.exception_handler(ValidationError)
async def handle_validation_error(request: Request, exc: ValidationError):
    return JSONResponse(status_code=exc.status_code, content={'error': str(exc)})


@app.exception_handler(UpstreamQueryError)
async def handle_upstream_error(request: Request, exc: UpstreamQueryError):
    logger.error('Upstream query failed on %s: %s', request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={'error': str(exc)})


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        create_tables()
        ensure_lookup_indexes()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'Telemed API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(appointment_routes.router, prefix='/appointments')
app.include_router(audit_routes.router, prefix='/audit')
app.include_router(directory_routes.router, prefix='/doctors')
app.include_router(schedule_routes.router, prefix='/doctor/time-slots')
app.include_router(init_routes.router, prefix='/init')
app.include_router(video_routes.router, prefix='/video-token')
