# recipebox API Main Entry Point
import logging
import os
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .db import Database
from .errors import install_error_handlers
from .settings import Settings, settings as default_settings
from .routers.auth import limiter, router as auth_router
from .routers.dev import router as dev_router
from .routers.grocery import router as grocery_router
from .routers.ready import router as ready_router
from .routers.recipes import router as recipes_router
from .routers.session import router as session_router

# Root handler; each app sets the "recipebox" logger level from its own settings
logging.basicConfig(
    level=default_settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger("recipebox")


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """Build the API.

    Pass `database` to reuse an existing handle (tests); the caller then owns
    its lifecycle. Otherwise one is created from settings at startup and
    disposed at shutdown.
    """
    settings = settings or default_settings
    logger.setLevel(settings.log_level.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = app.state.database is None
        if owned:
            app.state.database = Database.from_url(settings.database_url)
            logger.info("Database pool initialised")
        try:
            yield
        finally:
            if owned:
                app.state.database.dispose()
                app.state.database = None
                logger.info("Database pool closed")

    app = FastAPI(title="recipebox API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    install_error_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
        expose_headers=["Content-Length"],
        max_age=600,
    )

    app.include_router(ready_router, tags=["ready"])
    app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
    app.include_router(session_router, prefix="/api", tags=["session"])
    app.include_router(recipes_router, prefix="/api", tags=["recipes"])
    app.include_router(grocery_router, prefix="/api/grocery", tags=["grocery"])
    app.include_router(dev_router, prefix="/api", tags=["dev"])
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 3001))
    uvicorn.run(app, host="0.0.0.0", port=port)
