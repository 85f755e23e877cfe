from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.core.config import get_settings
from backend.core.logging import configure_logging
from backend.routes import mensa, proposals, tasks

SERVICE_NAME = "dashboard-backend"


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.logging.level, settings.logging.use_json)

    app = FastAPI(title="Dashboard Aggregation API", version="0.1.0")

    origins = settings.http.cors_origins or ["http://localhost:3000", "http://127.0.0.1:3000"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(proposals.router)
    app.include_router(mensa.router)
    app.include_router(tasks.router)

    @app.get("/health")
    async def health() -> JSONResponse:
        return JSONResponse(
            {
                "status": "ok",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "service": SERVICE_NAME,
            }
        )

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse({"message": "Dashboard Aggregation API", "docs": "/docs", "health": "/health"})

    return app


app = create_app()
