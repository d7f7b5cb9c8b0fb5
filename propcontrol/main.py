from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Routers
from .routers.estimates import router as estimates_router, estimation_error_handler
from .routers.notifications import router as notifications_router

# Core modules
from .core.config import Settings, settings
from .core.errors import EstimationError
from .core.logging import configure_logging, CorrelationIdMiddleware
from .core.metrics import PromMiddleware, metrics_endpoint
from .data.telegram_client import telegram_client
from .services.estimation_service import EstimationService
from .services.notification_service import NotificationService

def create_app(
    cfg: Settings = settings,
    estimation_service: EstimationService | None = None,
    notification_service: NotificationService | None = None,
) -> FastAPI:
    """
    App factory so tests and ASGI servers can instantiate cleanly.
    Services are built here, once; a missing model credential raises
    ConfigurationError before the app can serve anything.
    """
    configure_logging()

    app = FastAPI(
        title="PropControl Rehab Estimation API",
        version="2.0.0",
        description="Photo-based rehab estimates for BRRRR and flip analysis, plus the reminder relay.",
    )
    app.state.estimation_service = estimation_service or EstimationService.from_settings(cfg)
    app.state.notification_service = notification_service or NotificationService(
        telegram_client(), cfg.TELEGRAM_CHAT_ID
    )
    # Raw model text in error bodies only for local dev
    app.state.expose_raw_responses = cfg.ENV == "dev"

    allow_origins = [o.strip() for o in cfg.ALLOW_ORIGINS.split(",")] if cfg.ALLOW_ORIGINS else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-Id"],
    )

    # Observability middlewares
    app.add_middleware(CorrelationIdMiddleware)
    if cfg.PROMETHEUS_ENABLED:
        app.add_middleware(PromMiddleware)

    app.add_exception_handler(EstimationError, estimation_error_handler)

    # Meta routes
    @app.get("/v1/health", tags=["meta"])
    def health():
        return {"status": "ok"}

    @app.get("/v1/ping", tags=["meta"])
    def ping():
        return {"pong": True}

    if cfg.PROMETHEUS_ENABLED:
        app.add_route("/v1/metrics", metrics_endpoint, methods=["GET"])

    # Business routes
    app.include_router(estimates_router, prefix="/v1", tags=["estimates"])
    app.include_router(notifications_router, prefix="/v1", tags=["notifications"])

    return app

app = create_app()
