"""Write path for companies: identify, validate, check, persist, publish.

Each mutation stops at the first failing stage and leaves the store
untouched unless the persist stage committed. Publishing is best-effort:
a refused hand-off is logged and reported through ``MutationResult``, it
never rolls back the commit or turns a success into an error.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from company_service.core.errors import (
    Conflict,
    InvalidIdentifier,
    NotFound,
    PersistenceFailed,
    PublishFailed,
)
from company_service.core.identifiers import new_company_id, parse_company_id
from company_service.crud import company_crud
from company_service.models.companies import Company
from company_service.schemas.companies import CompanyCreate, CompanyOut, CompanyRef, CompanyUpdate
from company_service.schemas.events import (
    COMPANY_CREATED,
    COMPANY_DELETED,
    COMPANY_UPDATED,
    DomainEvent,
)
from company_service.services.company_validator import validate_for_create, validate_for_update
from company_service.services.event_publisher import EventPublisher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MutationResult:
    company: Optional[CompanyOut]
    published: bool


class CompanyCommandProcessor:
    def __init__(self, db: Session, publisher: EventPublisher):
        self.db = db
        self.publisher = publisher

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get(self, raw_id: str) -> CompanyOut:
        company_id = parse_company_id(raw_id)
        company = self._load(company_id, "read")
        return CompanyOut.model_validate(company)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, payload: CompanyCreate) -> MutationResult:
        validate_for_create(payload)

        try:
            name_taken = company_crud.company_name_taken(self.db, payload.name)
        except SQLAlchemyError as exc:
            raise self._store_failure("check company name", exc) from exc
        if name_taken:
            logger.info("Rejected duplicate company name %r", payload.name)
            raise Conflict(f"a company named '{payload.name}' already exists")

        company = Company(
            id=new_company_id(),
            name=payload.name,
            description=payload.description,
            employees=payload.employees,
            registered=payload.registered,
            type=payload.type,
        )
        try:
            company = company_crud.create_company(self.db, company)
        except IntegrityError as exc:
            # a concurrent create won the race for this name
            logger.info("Store rejected company %r: %s", payload.name, exc.orig)
            raise Conflict(f"a company named '{payload.name}' already exists") from exc
        except SQLAlchemyError as exc:
            raise self._store_failure("create company", exc) from exc

        snapshot = CompanyOut.model_validate(company)
        logger.info("Created company %s", snapshot.id)
        published = self._publish(DomainEvent(event_type=COMPANY_CREATED, company=snapshot))
        return MutationResult(company=snapshot, published=published)

    def update(self, raw_id: str, payload: CompanyUpdate) -> MutationResult:
        company_id = parse_company_id(raw_id)
        fields = payload.changed_fields()
        validate_for_update(fields)

        company = self._load(company_id, "update")
        try:
            company = company_crud.update_company(self.db, company, fields)
        except IntegrityError as exc:
            if "name" not in fields:
                raise self._store_failure("update company", exc) from exc
            logger.info("Store rejected update of %s: %s", company_id, exc.orig)
            raise Conflict(f"a company named '{fields['name']}' already exists") from exc
        except SQLAlchemyError as exc:
            raise self._store_failure("update company", exc) from exc

        snapshot = CompanyOut.model_validate(company)
        logger.info("Updated company %s fields=%s", company_id, sorted(fields))
        published = self._publish(DomainEvent(event_type=COMPANY_UPDATED, company=snapshot))
        return MutationResult(company=snapshot, published=published)

    def delete(self, raw_id: str) -> MutationResult:
        company_id = parse_company_id(raw_id)
        company = self._load(company_id, "delete")
        try:
            company_crud.soft_delete_company(self.db, company)
        except SQLAlchemyError as exc:
            raise self._store_failure("delete company", exc) from exc
        logger.info("Deleted company %s", company_id)

        # The record is gone; the event only carries its id.
        try:
            event_id = parse_company_id(company_id)
        except InvalidIdentifier:
            logger.error("Could not parse id %r for the delete event; not publishing", company_id)
            return MutationResult(company=None, published=False)
        published = self._publish(DomainEvent(event_type=COMPANY_DELETED, company=CompanyRef(id=event_id)))
        return MutationResult(company=None, published=published)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _load(self, company_id: str, operation: str) -> Company:
        try:
            company = company_crud.get_company(self.db, company_id)
        except SQLAlchemyError as exc:
            raise self._store_failure(f"{operation} company", exc) from exc
        if company is None:
            logger.info("Company %s not found for %s", company_id, operation)
            raise NotFound()
        return company

    def _publish(self, event: DomainEvent) -> bool:
        try:
            self.publisher.publish(event)
        except PublishFailed as exc:
            logger.warning("Event publish failed for %s: %s", event.event_type, exc.message)
            return False
        except Exception:
            # the mutation is already committed; any publisher error only degrades the response
            logger.exception("Unexpected error publishing %s event", event.event_type)
            return False
        return True

    @staticmethod
    def _store_failure(operation: str, exc: SQLAlchemyError) -> PersistenceFailed:
        logger.error("Could not %s", operation, exc_info=exc)
        return PersistenceFailed(f"could not {operation}")
