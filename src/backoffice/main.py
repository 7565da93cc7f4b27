import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from tortoise import Tortoise
from tortoise.contrib.fastapi import tortoise_exception_handlers

from .core.config import CLIENT_URL, TORTOISE_ORM_CONFIG
from .core.logging_config import configure_logging
from .features.auth.router import router as auth_router
from .features.reports.router import router as reports_router
from .features.reports.schemas import ReportFailure
from .features.reports.service import ReportError

configure_logging()
logger = logging.getLogger("backoffice.main")  # This logger will inherit from 'backoffice'

ALLOWED_ORIGINS = [origin for origin in ("http://localhost:3000", CLIENT_URL) if origin]
API_PREFIX = "/api/v1"
REPORTS_PATH = f"{API_PREFIX}{reports_router.prefix}/"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Handles startup and shutdown events, such as connecting to the database.
    """
    logger.info("Starting application...")
    await Tortoise.init(config=TORTOISE_ORM_CONFIG)
    logger.info("Tortoise-ORM has been initialized.")

    yield

    await Tortoise.close_connections()
    logger.info("Tortoise-ORM connections have been closed.")


app = FastAPI(
    title="Back-office Reports API",
    description="Inventory and commerce back-office API with aggregate reports.",
    version="0.1.0",
    exception_handlers=tortoise_exception_handlers(),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ReportError)
async def report_error_handler(request: Request, exc: ReportError):
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ReportFailure(message=str(exc)).model_dump(),
    )


@app.exception_handler(StarletteHTTPException)
async def report_http_error_handler(request: Request, exc: StarletteHTTPException):
    """Auth and routing errors on report routes use the report failure envelope."""
    if not request.url.path.startswith(REPORTS_PATH):
        return await http_exception_handler(request, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content=ReportFailure(message=str(exc.detail)).model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.get("/")
async def read_root(request: Request):
    """
    Root endpoint for the API.
    """
    client_host = request.client.host if request.client else "unknown client"
    logger.info(f"Root endpoint '/' accessed by {client_host}")
    return {"message": "Back-office API is working!"}


# Include your routers
app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(reports_router, prefix=API_PREFIX)
