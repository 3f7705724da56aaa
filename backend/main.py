import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from yoon.api import routes_auth, routes_bookings, routes_health, routes_trips
from yoon.core.config import settings
from yoon.core.errors import YoonError
from yoon.core.logging import configure_logging
from yoon.services.identity import IdentityProvider
from yoon.services.notifications import ExpoPushDispatcher
from yoon.storage.repository import InMemoryRepository

logger = logging.getLogger(__name__)


async def handle_domain_error(request: Request, exc: YoonError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.info("%s %s rejected: %s (%s)", request.method, request.url.path, exc.name, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.name},
    )


def create_app(repository: InMemoryRepository | None = None, notifier=None) -> FastAPI:
    configure_logging()
    app = FastAPI(title=settings.app_name, version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(YoonError, handle_domain_error)

    repository = repository or InMemoryRepository()

    app.include_router(routes_health.router, tags=["health"])
    app.include_router(routes_auth.router, prefix="/auth", tags=["auth"])
    app.include_router(routes_trips.router, prefix="/trips", tags=["trips"])
    app.include_router(routes_bookings.router, prefix="/bookings", tags=["bookings"])

    # Shared handles for request dependencies
    app.state.repository = repository
    app.state.identity_provider = IdentityProvider(users=repository)
    app.state.notifier = notifier or ExpoPushDispatcher()
    app.state.settings = settings
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
