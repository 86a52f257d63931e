from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from company_service.models.companies import Company, utcnow

# Every read below ignores soft-deleted rows.


def get_company(db: Session, company_id: str) -> Optional[Company]:
    return db.execute(
        select(Company).where(Company.id == company_id, Company.deleted_at.is_(None))
    ).scalar_one_or_none()


def company_name_taken(db: Session, name: str) -> bool:
    found = db.execute(
        select(Company.id).where(Company.name == name, Company.deleted_at.is_(None)).limit(1)
    ).first()
    return found is not None


def _commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


def create_company(db: Session, company: Company) -> Company:
    db.add(company)
    _commit(db)
    db.refresh(company)
    return company


def update_company(db: Session, company: Company, fields: dict) -> Company:
    for key, value in fields.items():
        setattr(company, key, value)
    company.updated_at = utcnow()
    _commit(db)
    db.refresh(company)
    return company


def soft_delete_company(db: Session, company: Company) -> Company:
    now = utcnow()
    company.deleted_at = now
    company.updated_at = now
    _commit(db)
    return company
