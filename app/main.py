"""
Alpha Builder backend application with resource lifecycle management.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from app.config import settings
from app.db.pool import db_pool
from app.infrastructure.observability.logging import get_logger, log_request, setup_logging
from app.middleware.request_context import RequestContextMiddleware
from app.routes import binance_auth, feeds, health, users, zk_email
from app.services.feeds.registry import feed_registry
from app.services.infrastructure.redis_client import fast_redis

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown with proper resource management."""
    logger.info(
        "Application starting",
        environment=settings.environment,
        session_store=settings.SESSION_STORE_BACKEND,
        user_store=settings.USER_STORE_BACKEND,
        account_provider=settings.SMART_ACCOUNT_PROVIDER,
    )

    startup_tasks = []

    try:
        if settings.USER_STORE_BACKEND == "postgres":
            logger.info("Initializing database pool")
            await db_pool.initialize()
            startup_tasks.append("database_pool")

        if settings.SESSION_STORE_BACKEND == "redis":
            logger.info("Initializing Redis connection")
            await fast_redis.initialize()
            startup_tasks.append("redis")

        await feed_registry.start_all()
        startup_tasks.append("feeds")

        logger.info("All services initialized successfully", services=startup_tasks)

    except Exception as e:
        logger.error("Failed to initialize services", error=str(e), completed_tasks=startup_tasks)

        if "redis" in startup_tasks:
            await fast_redis.close()
        if "database_pool" in startup_tasks:
            await db_pool.close()
        raise

    yield

    # Shutdown sequence (reverse order); close() methods log their own errors
    logger.info("Application shutting down")

    await feed_registry.stop_all()
    if "redis" in startup_tasks:
        await fast_redis.close()
    if "database_pool" in startup_tasks:
        await db_pool.close()

    logger.info("Shutdown complete")


app = FastAPI(
    title="Alpha Builder",
    description="Smart-account onboarding by zk-email proof or linked Binance wallet",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(RequestContextMiddleware)

app.include_router(health.router)
app.include_router(zk_email.router)
app.include_router(binance_auth.router)
app.include_router(users.router)
app.include_router(feeds.router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests with timing."""
    start_time = time.time()
    response = await call_next(request)
    log_request(
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round((time.time() - start_time) * 1000, 2),
        request_id=getattr(request.state, "request_id", None),
    )
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
