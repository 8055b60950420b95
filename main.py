from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from app.core.config import Settings, settings as default_settings
from app.api.v1.api import api_router
from app.core.exceptions import StoreConfigurationError
from app.services.email_service import EmailDispatcher
from app.services.waitlist_store import build_waitlist_store

# Load environment variables
load_dotenv()

logger = logging.getLogger("konecbo")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, (level or "INFO").upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    # Audit logger writes raw JSON lines
    audit_logger = logging.getLogger("audit")
    if not audit_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))
        audit_logger.addHandler(handler)
    audit_logger.setLevel(logging.INFO)
    # Do not propagate to root to avoid duplication
    audit_logger.propagate = False


def create_app(settings: Settings = default_settings) -> FastAPI:
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Only build what tests or callers have not already provided
        if not hasattr(app.state, "waitlist_store"):
            try:
                app.state.waitlist_store = build_waitlist_store(settings)
            except StoreConfigurationError as e:
                # Serve anyway: submissions get "unavailable", the count reads 0
                logger.exception(f"Waitlist store misconfigured: {e.message} {e.details or ''}".rstrip())
                app.state.waitlist_store = None
        if not hasattr(app.state, "email_dispatcher"):
            app.state.email_dispatcher = EmailDispatcher(settings)
        store = app.state.waitlist_store
        logger.info(
            f"Startup complete: store={store.name if store else 'unavailable'} "
            f"email_provider={app.state.email_dispatcher.provider}"
        )
        yield
        logger.info("Shutdown complete.")

    app = FastAPI(
        title="Konecbo Waitlist API",
        description="Waitlist signup backend for the Konecbo landing page.",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Set up CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # Include API router
    app.include_router(api_router, prefix="/api/v1")

    @app.get("/")
    async def root():
        return {"message": "Konecbo Waitlist API is running"}

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
