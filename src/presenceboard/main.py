"""presenceboard application entrypoint."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware

from presenceboard.client.base import create_http_client
from presenceboard.config import load_config, settings
from presenceboard.dashboard.controller import DashboardController

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup/shutdown lifecycle."""
    cfg = load_config()
    http = create_http_client(cfg)
    controller = DashboardController(
        http, consider_home=timedelta(minutes=cfg.consider_home_minutes)
    )
    app.state.dashboard = controller

    # A backend that is down at startup only shows up in the error banner
    await controller.refresh()
    logger.info("Dashboard ready (status=%s)", controller.state.status)

    yield

    await http.aclose()
    logger.info("Backend client closed")


app = FastAPI(
    title="presenceboard",
    description="Who is home, from the router's client list",
    version="0.1.0",
    lifespan=lifespan,
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "script-src 'self' https://unpkg.com; "
            "style-src 'self' 'unsafe-inline'"
        )
        return response


app.add_middleware(SecurityHeadersMiddleware)


# Register routers
from presenceboard.api.routes import router as api_router  # noqa: E402
from presenceboard.ui.routes import router as ui_router  # noqa: E402

app.include_router(api_router)
app.include_router(ui_router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


def main() -> None:
    import uvicorn

    logger.info("Starting presenceboard on %s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
