from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from channel_schedule.core.config import Config, load_config
from web.backend.routers import slots


def create_app(config: Optional[Config] = None) -> FastAPI:
    """Build the API app; CORS origins come from the [server] config section."""
    config = config or load_config()
    application = FastAPI(title="Channel Schedule API", version="0.1.0")

    application.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(slots.router, prefix="/api")

    @application.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return application


app = create_app()
