"""
Advice Engine API
=================
FastAPI application exposing concept lookup, field discovery, rule
conversion, rule evaluation and advice ranking.
Pydantic v2 compatible with lifespan events.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from config.settings import settings
from models.schemas import ErrorResponse
from rules.dictionaries.concepts import get_concept_registry
from services.cache import get_catalog_cache
from api.routers import health, concepts, catalog, rules, advice


# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager"""
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    registry = get_concept_registry()
    logger.info(f"Concept registry loaded ({len(registry)} concepts)")

    cache = get_catalog_cache()
    logger.info(f"Catalog cache initialized (enabled={cache.enabled})")

    yield  # Application runs here

    # Shutdown
    logger.info("Shutting down application")
    cache.clear()


# Create FastAPI app with lifespan
app = FastAPI(
    title=settings.app_name,
    description="Rule matching and concept resolution for targeted real-estate advice",
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.api.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(concepts.router)
app.include_router(catalog.router)
app.include_router(rules.router)
app.include_router(advice.router)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=str(exc.detail),
            code=str(exc.status_code),
        ).model_dump()
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.debug(f"Rejected request to {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error="Invalid request",
            detail="; ".join(
                f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', '')}"
                for err in exc.errors()
            ),
            code="422",
        ).model_dump()
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="Internal server error",
            detail=str(exc) if settings.environment == "development" else None,
        ).model_dump()
    )


# =============================================================================
# RUN SERVER
# =============================================================================

def run():
    """Run the API server"""
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.reload,
        workers=settings.api.workers if not settings.api.reload else 1,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    run()
