import enum
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Enum, Index, Integer, String
from sqlalchemy.dialects import mysql

from company_service.core.identifiers import new_company_id
from company_service.db.database import Base

NAME_MAX_LENGTH = 15
DESCRIPTION_MAX_LENGTH = 3000


class CompanyType(str, enum.Enum):
    CORPORATIONS = "Corporations"
    NON_PROFIT = "NonProfit"
    COOPERATIVE = "Cooperative"
    SOLE_PROPRIETORSHIP = "Sole Proprietorship"


COMPANY_TYPES = [t.value for t in CompanyType]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _timestamp():
    # MySQL DATETIME drops sub-second precision unless fsp is set
    return DateTime(timezone=True).with_variant(mysql.DATETIME(fsp=6), "mysql")


class Company(Base):
    __tablename__ = "companies"

    id = Column(String(36), primary_key=True, default=new_company_id)
    name = Column(String(NAME_MAX_LENGTH), nullable=False)
    description = Column(String(DESCRIPTION_MAX_LENGTH), nullable=True)
    employees = Column(Integer, nullable=False)
    registered = Column(Boolean, nullable=False)
    # stored as the display value ("Sole Proprietorship"), not the member name
    type = Column(
        Enum(*COMPANY_TYPES, name="company_type"),
        nullable=False,
    )
    created_at = Column(_timestamp(), default=utcnow, nullable=False)
    updated_at = Column(_timestamp(), default=utcnow, onupdate=utcnow, nullable=False)
    deleted_at = Column(_timestamp(), nullable=True, index=True)

    __table_args__ = (
        # Live names are unique. Dialects without partial indexes get a plain unique index.
        Index(
            "uq_companies_name_live",
            "name",
            unique=True,
            sqlite_where=deleted_at.is_(None),
            postgresql_where=deleted_at.is_(None),
        ),
    )
