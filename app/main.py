"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1 import auth, categories, departments, items, permissions, roles, users
from app.config import settings
from app.core.exceptions import ChangeLogError, MissingActorError
from app.database import close_db, get_db, init_db
from app.logging_config import setup_logging
from app.middleware.metrics import setup_metrics

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    setup_logging()
    await init_db()
    yield
    # Shutdown
    await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_metrics(app)


@app.exception_handler(MissingActorError)
async def missing_actor_handler(request: Request, exc: MissingActorError):
    """A mutation reached the change log without an authenticated actor."""
    logger.warning("Rejected unattributed mutation on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"detail": "Unauthorized"})


@app.exception_handler(ChangeLogError)
async def change_log_error_handler(request: Request, exc: ChangeLogError):
    """Any other change-log failure aborted the mutation."""
    logger.error("Change logging failed on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An unexpected error occurred"},
    )


# Include routers
app.include_router(auth.router, prefix=f"{settings.API_V1_PREFIX}/auth", tags=["auth"])
app.include_router(items.router, prefix=f"{settings.API_V1_PREFIX}/items", tags=["items"])
app.include_router(
    categories.router, prefix=f"{settings.API_V1_PREFIX}/categories", tags=["categories"]
)
app.include_router(
    departments.router, prefix=f"{settings.API_V1_PREFIX}/departments", tags=["departments"]
)
app.include_router(
    permissions.router, prefix=f"{settings.API_V1_PREFIX}/permissions", tags=["permissions"]
)
app.include_router(roles.router, prefix=f"{settings.API_V1_PREFIX}/roles", tags=["roles"])
app.include_router(users.router, prefix=f"{settings.API_V1_PREFIX}/users", tags=["users"])


@app.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Health check endpoint."""
    health_status = {"status": "ok", "checks": {"database": "unknown"}}

    try:
        await db.execute(select(1))
        health_status["checks"]["database"] = "ok"
    except SQLAlchemyError as e:
        health_status["checks"]["database"] = f"error: {str(e)}"
        health_status["status"] = "degraded"

    return health_status
