from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from resplan.api.routes import get_cache, router as api_router
from resplan.config.settings import get_settings
from resplan.storage.cache import FindingsCache
from resplan.utils.logging_config import setup_logging


# Setup logging
logger = setup_logging()
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Overload limit: {settings.overload_task_limit} tasks")
    logger.info(f"Findings cache: {'on' if settings.cache_enabled else 'off'}")
    yield
    logger.info(f"Shutting down {settings.app_name}...")


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    description="Conflict detection and utilization engine for resource planning",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1", tags=["planning"])


@app.get("/health", tags=["health"])
def health_check(cache: Optional[FindingsCache] = Depends(get_cache)):
    """Health check endpoint for monitoring and load balancers."""
    cache_status = "disabled"
    if cache is not None:
        cache_status = "ok" if cache.health_check() else "unavailable"
    return {"status": "ok", "app": settings.app_name, "version": "1.0.0", "cache": cache_status}
