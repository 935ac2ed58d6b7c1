import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from metaso_api.config import settings
from metaso_api.routes import chat, health, models, token
from metaso_api.services.metaso import MetasoClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle events"""
    app.state.metaso_client = MetasoClient()
    logger.info(f"metaso client ready for {app.state.metaso_client.base_url}")

    yield

    # Shutdown: Cleanup resources
    await app.state.metaso_client.cleanup()


app = FastAPI(
    title="metaso API",
    description="OpenAI-compatible chat completions backed by metaso search",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware (nginx handles external access, but useful for dev)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(chat.router, prefix="/v1", tags=["chat"])
app.include_router(models.router, prefix="/v1", tags=["models"])
app.include_router(token.router, prefix="/token", tags=["token"])


def run():
    """Console entry point"""
    import uvicorn

    uvicorn.run(
        "metaso_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
