import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from aichat.api.router import api_router
from aichat.config import get_settings
from aichat.services.gateway import INTERNAL_ERROR_MESSAGE, CompletionGateway
from aichat.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level)
    logger.info(
        f"AI Chat backend starting up (provider={settings.llm_provider}, "
        f"model={settings.llm_chat_model})..."
    )
    yield
    logger.info("AI Chat backend shutting down...")


def create_app(gateway: CompletionGateway | None = None) -> FastAPI:
    """Build the FastAPI app.

    Args:
        gateway: Completion gateway to serve /api/chat with. If None, one is
            built from settings around the LangChain completion capability.
    """
    settings = get_settings()

    app = FastAPI(
        title="AI Chat",
        description="Single-turn chat assistant API",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.gateway = gateway or CompletionGateway.from_settings(settings)

    # CORS — allow frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API routes
    app.include_router(api_router)

    @app.exception_handler(500)
    async def internal_error_handler(request: Request, exc):
        logger.exception("Internal server error")
        return JSONResponse(
            status_code=500,
            content={"error": INTERNAL_ERROR_MESSAGE},
        )

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run("aichat.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
