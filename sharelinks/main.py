from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from sharelinks.api.audit import router as audit_router
from sharelinks.api.links import router as links_router
from sharelinks.api.notifications import router as notifications_router
from sharelinks.api.policy import router as policy_router
from sharelinks.api.sync import router as sync_router
from sharelinks.config import Settings, settings as default_settings
from sharelinks.container import Services
from sharelinks.errors import register_error_handlers
from sharelinks.logging import configure_logging


def create_app(
    settings: Settings | None = None, services: Services | None = None
) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings)
        if services is not None:
            yield
            return
        owned = Services(settings)
        await owned.init()
        app.state.services = owned
        try:
            yield
        finally:
            await owned.shutdown()

    app = FastAPI(title="ShareLinks API", lifespan=lifespan)
    if services is not None:
        app.state.services = services

    register_error_handlers(app)

    for router in (
        links_router,
        sync_router,
        policy_router,
        notifications_router,
        audit_router,
    ):
        app.include_router(router)
        app.include_router(router, prefix="/api/v1")

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    @app.get("/metrics")
    def metrics():
        data = generate_latest()
        return Response(content=data, media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()
