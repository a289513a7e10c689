"""
# Account Service Application

FastAPI application entry point.

## Lifespan

**Startup:**
1. Connect to MongoDB and create indexes.
2. Build the `Container` (repositories and services) on `app.state`.
3. Start the background services (event bus connection and RPC responders).

**Shutdown:**
1. Stop the background services. In-flight RPC replies are not drained.
2. Disconnect from MongoDB.

## Running

```bash
uvicorn account_service.main:app --host 127.0.0.1 --port 3000
```
"""

import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from account_service import __version__
from account_service.background.background_service import BackgroundService
from account_service.config import settings
from account_service.container import Container
from account_service.database import db_manager
from account_service.managers.logging_manager import get_logger
from account_service.routes import applications, children, educators, families, index, institutions, users
from account_service.routes.errors import register_exception_handlers
from account_service.utils.logging_utils import RequestLoggingMiddleware
from account_service.utils.strings import Strings

logger = get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    startup_start_time = time.time()
    logger.info(
        "Starting %s v%s (%s)",
        Strings.APP_TITLE,
        __version__,
        "production" if settings.is_production else "development",
    )

    await db_manager.connect()
    await db_manager.create_indexes()

    container = Container.from_database(db_manager)
    app.state.container = container
    background_service = BackgroundService(container)
    await background_service.start_services()

    logger.info("Application startup completed in %.3fs", time.time() - startup_start_time)
    try:
        yield
    finally:
        logger.info("Shutting down %s", Strings.APP_TITLE)
        await background_service.stop_services()
        await db_manager.disconnect()
        logger.info("Application shutdown completed")


def create_app() -> FastAPI:
    app = FastAPI(
        title=Strings.APP_TITLE,
        description=Strings.APP_DESCRIPTION,
        version=__version__,
        lifespan=lifespan,
    )

    cors_origins = [origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()]
    if cors_origins:
        logger.info("Configuring CORS with origins: %s", cors_origins)
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "DELETE", "OPTIONS", "PATCH"],
            allow_headers=["*"],
        )
    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)

    routers_config = [
        ("index", index.router),
        ("children", children.router),
        ("families", families.router),
        ("educators", educators.educators_router),
        ("healthprofessionals", educators.health_professionals_router),
        ("applications", applications.router),
        ("institutions", institutions.router),
        ("users", users.router),
    ]
    for router_name, router in routers_config:
        app.include_router(router)
        logger.debug("Included %s router", router_name)

    Instrumentator(should_group_status_codes=True, should_ignore_untemplated=True).instrument(app).expose(
        app, include_in_schema=False, endpoint="/metrics"
    )
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "account_service.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG, log_level="info"
    )
