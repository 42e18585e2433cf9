from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from partner_onboarding.config import settings
from partner_onboarding.db import Base, engine
from partner_onboarding.routers import approvals, notifications, onboarding
from partner_onboarding.exceptions import (
    AppException,
    app_exception_handler,
    general_exception_handler,
    http_exception_handler,
    persistence_exception_handler,
)
from partner_onboarding.middleware.request_id import RequestIDMiddleware
from partner_onboarding.utils.logging import configure_logging

import os
import logging
from alembic import command
from alembic.config import Config

# Sentry integration (optional)
try:
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    if settings.SENTRY_DSN:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            integrations=[
                FastApiIntegration(),
                SqlalchemyIntegration(),
            ],
            traces_sample_rate=0.1,
            environment=settings.ENVIRONMENT,
        )
        logging.info("Sentry error tracking initialized")
except ImportError:
    logging.warning("Sentry SDK not installed, skipping error tracking")

configure_logging(settings.log_level_value)
logger = logging.getLogger(__name__)


def run_migrations():
    """Run Alembic migrations on startup"""
    logger.info("Running DB migrations...")
    # partner_onboarding/main.py -> backend/alembic.ini
    backend_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    alembic_cfg = Config(os.path.join(backend_dir, "alembic.ini"))
    alembic_cfg.set_main_option("script_location", os.path.join(backend_dir, "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url_fixed)
    command.upgrade(alembic_cfg, "head")
    logger.info("DB migrations completed successfully")


app = FastAPI(
    title=settings.APP_NAME,
    description="Partner onboarding progression with approval-gated stage reversals",
    version="1.0.0",
)

# Register exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(SQLAlchemyError, persistence_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

allowed_origins = settings.cors_origins_list
if settings.FRONTEND_URL and settings.FRONTEND_URL not in allowed_origins:
    allowed_origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
    max_age=3600,
)
app.add_middleware(RequestIDMiddleware)


@app.on_event("startup")
async def startup_event():
    """Initialize application on startup"""
    logger.info(f"Starting {settings.APP_NAME}...")
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        run_migrations()
    else:
        Base.metadata.create_all(bind=engine)


app.include_router(onboarding.router)
app.include_router(approvals.router)
app.include_router(notifications.router)


@app.get("/health")
def health_check():
    return {"status": "healthy", "service": settings.APP_NAME, "environment": settings.ENVIRONMENT}
