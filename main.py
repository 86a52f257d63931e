import logging

import uvicorn
from fastapi import FastAPI

from company_service.api.company_router import router as company_router
from company_service.api.user import router as user_router
from company_service.core.config import get_settings
from company_service.core.errors import register_exception_handlers
from company_service.crud.user_crud import ensure_default_user
from company_service.db.create_tables import create_tables
from company_service.db.database import SessionLocal, engine
from company_service.services.event_publisher import create_event_publisher

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("company_service")

app = FastAPI(title="Company Service")
register_exception_handlers(app)


@app.on_event("startup")
def on_startup():
    """
    Create tables, provision the default admin account, connect the event bus.
    """
    logger.info("Initializing database tables on %s...", engine.dialect.name)
    create_tables(engine)

    db = SessionLocal()
    try:
        ensure_default_user(db, settings.api_user, settings.api_password)
    finally:
        db.close()

    app.state.event_publisher = create_event_publisher(settings)
    logger.info("Event bus backend: %s (topic %s)", settings.event_bus_backend, settings.event_topic)


@app.on_event("shutdown")
def on_shutdown():
    """
    Drain in-flight event deliveries (bounded), then release the database.
    """
    publisher = getattr(app.state, "event_publisher", None)
    if publisher is not None:
        publisher.close(timeout=settings.event_drain_timeout)
    engine.dispose()
    logger.info("Shutdown complete")


app.include_router(user_router, prefix="/api")
app.include_router(company_router, prefix="/api")


if __name__ == "__main__":
    logger.info("Start company service API on port %s", settings.api_port)
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        timeout_graceful_shutdown=settings.shutdown_grace_seconds,
    )
