import logging

from sqlalchemy.engine import Engine

from company_service.db.database import Base
from company_service.models.companies import Company  # noqa: F401
from company_service.models.user import User  # noqa: F401

logger = logging.getLogger(__name__)


def create_tables(engine: Engine) -> None:
    """Create every table registered on Base (no-op for existing tables)."""
    Base.metadata.create_all(bind=engine)
    logger.info("Tables ready on %s", engine.dialect.name)
