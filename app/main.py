# app/main.py
from fastapi import FastAPI

from app.api.routes import accounts, health, internal, meetings, rules
from app.core.config import get_settings
from app.core.logging import configure_logging
from app.db.session import AsyncSessionLocal, dispose_engine, init_db_for_startup
from app.services.registry import ServiceRegistry, build_services


def create_app(services: ServiceRegistry | None = None) -> FastAPI:
    """
    Application factory for the Meeting Bot service.

    `services` lets tests inject a registry wired with fake collaborators.
    """
    settings = get_settings()
    configure_logging()

    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Backend service that evaluates calendar meetings against prioritized,\n"
            "per-account and global rules and invites a recording bot to the meetings\n"
            "whose primary rule asks for it."
        ),
        version="0.1.0",
    )

    app.state.services = services or build_services(AsyncSessionLocal, settings)

    # Routers
    app.include_router(health.router)
    app.include_router(accounts.router)
    app.include_router(rules.router)
    app.include_router(meetings.router)
    app.include_router(internal.router)

    @app.on_event("startup")
    async def on_startup() -> None:  # pragma: no cover
        await init_db_for_startup()

    @app.on_event("shutdown")
    async def on_shutdown() -> None:  # pragma: no cover
        await dispose_engine()

    return app


app = create_app()
