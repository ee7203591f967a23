"""FastAPI application setup."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..app import Application
from .middleware import add_rate_limit_middleware
from .routes import agents, control, messaging, observability


# Global application instance
_app: Application | None = None


def get_app() -> Application:
    """Get the global application instance."""
    global _app
    if not _app:
        _app = Application()
    return _app


def create_fastapi_app(application: Application | None = None) -> FastAPI:
    """Create and configure FastAPI application."""
    if application is None:
        application = get_app()

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        await application.start()
        yield
        await application.stop()

    fastapi_app = FastAPI(
        title="Durable Agents API",
        description="Durable actors with a persistent message queue",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Registered first so CORS wraps rate-limit rejections too
    add_rate_limit_middleware(fastapi_app, application)

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=application.settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "Retry-After",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
        ],
    )

    fastapi_app.include_router(agents.create_agents_router(application))
    fastapi_app.include_router(messaging.create_messaging_router(application))
    fastapi_app.include_router(observability.create_observability_router(application))
    fastapi_app.include_router(control.create_control_router(application))

    return fastapi_app
