"""Command processor: stage ordering, store classification, best-effort publishing."""
import uuid

import pytest
import redis
from sqlalchemy.exc import OperationalError

import company_service.services.company_service as processor_module
from company_service.core.errors import (
    Conflict,
    InvalidIdentifier,
    NotFound,
    PersistenceFailed,
    ValidationFailed,
)
from company_service.crud import company_crud
from company_service.models.companies import Company
from company_service.schemas.companies import CompanyCreate, CompanyUpdate
from company_service.services.company_service import CompanyCommandProcessor

from conftest import VALID_COMPANY


@pytest.fixture
def processor(db, publisher):
    return CompanyCommandProcessor(db, publisher)


def _store_error(*args, **kwargs):
    raise OperationalError("INSERT INTO companies ...", {}, Exception("connection lost"))


def test_create_assigns_fresh_id_and_publishes_snapshot(processor, publisher):
    result = processor.create(CompanyCreate(**VALID_COMPANY))

    assert result.published is True
    assert str(uuid.UUID(result.company.id)) == result.company.id
    assert result.company.name == "Acme"
    assert result.company.created_at is not None

    [event] = publisher.events()
    assert event.event_type == "company_created"
    assert event.company.id == result.company.id
    assert event.company.employees == 10
    assert event.timestamp.endswith("Z")


def test_create_ids_are_never_reused(processor):
    first = processor.create(CompanyCreate(**VALID_COMPANY))
    second = processor.create(CompanyCreate(**{**VALID_COMPANY, "name": "Other"}))
    assert first.company.id != second.company.id


def test_create_invalid_payload_touches_nothing(processor, publisher, db):
    with pytest.raises(ValidationFailed):
        processor.create(CompanyCreate(**{**VALID_COMPANY, "employees": 0}))
    assert db.query(Company).count() == 0
    assert publisher.attempts == 0


def test_create_duplicate_name_conflicts(processor, publisher):
    processor.create(CompanyCreate(**VALID_COMPANY))
    with pytest.raises(Conflict):
        processor.create(CompanyCreate(**VALID_COMPANY))
    assert publisher.attempts == 1


def test_store_unique_index_settles_a_lost_race(processor, monkeypatch):
    processor.create(CompanyCreate(**VALID_COMPANY))
    # pretend the pre-check ran before the other insert committed
    monkeypatch.setattr(company_crud, "company_name_taken", lambda db, name: False)
    with pytest.raises(Conflict):
        processor.create(CompanyCreate(**VALID_COMPANY))


def test_name_is_reusable_after_delete(processor):
    first = processor.create(CompanyCreate(**VALID_COMPANY))
    processor.delete(first.company.id)
    second = processor.create(CompanyCreate(**VALID_COMPANY))
    assert second.company.id != first.company.id


def test_create_store_failure_is_persistence_failed(processor, publisher, monkeypatch):
    monkeypatch.setattr(company_crud, "create_company", _store_error)
    with pytest.raises(PersistenceFailed) as exc_info:
        processor.create(CompanyCreate(**VALID_COMPANY))
    assert exc_info.value.message == "could not create company"
    assert "connection lost" not in exc_info.value.message
    assert publisher.attempts == 0


def test_publish_failure_keeps_the_created_record(processor, publisher, db):
    publisher.fail_next = True
    result = processor.create(CompanyCreate(**VALID_COMPANY))

    assert result.published is False
    assert publisher.attempts == 1
    assert company_crud.get_company(db, result.company.id) is not None


def test_get_rejects_bad_identifier_before_store(processor, monkeypatch):
    monkeypatch.setattr(company_crud, "get_company", _store_error)
    with pytest.raises(InvalidIdentifier):
        processor.get("invaliduuid")


def test_get_unknown_id_is_not_found(processor):
    with pytest.raises(NotFound) as exc_info:
        processor.get(str(uuid.uuid4()))
    assert exc_info.value.message == "record not found"


def test_update_changes_only_sent_fields(processor, publisher):
    created = processor.create(CompanyCreate(**VALID_COMPANY)).company
    result = processor.update(created.id, CompanyUpdate(name="Acme2"))

    assert result.published is True
    assert result.company.name == "Acme2"
    assert result.company.employees == created.employees
    assert result.company.description == created.description
    assert result.company.updated_at > created.updated_at

    events = publisher.events()
    assert [e.event_type for e in events] == ["company_created", "company_updated"]
    assert events[1].company.name == "Acme2"


def test_update_validates_before_existence_check(processor):
    with pytest.raises(ValidationFailed):
        processor.update(str(uuid.uuid4()), CompanyUpdate(employees=-1))


def test_update_unknown_id_is_not_found(processor, publisher):
    with pytest.raises(NotFound):
        processor.update(str(uuid.uuid4()), CompanyUpdate(employees=0))
    assert publisher.attempts == 0


def test_update_into_taken_name_conflicts(processor):
    processor.create(CompanyCreate(**VALID_COMPANY))
    other = processor.create(CompanyCreate(**{**VALID_COMPANY, "name": "Other"})).company
    with pytest.raises(Conflict):
        processor.update(other.id, CompanyUpdate(name="Acme"))


def test_update_can_unregister(processor):
    created = processor.create(CompanyCreate(**VALID_COMPANY)).company
    result = processor.update(created.id, CompanyUpdate(registered=False, employees=0))
    assert result.company.registered is False
    assert result.company.employees == 0


def test_delete_soft_deletes_and_publishes_id_only(processor, publisher, db):
    created = processor.create(CompanyCreate(**VALID_COMPANY)).company
    result = processor.delete(created.id)

    assert result.company is None
    assert result.published is True
    row = db.get(Company, created.id)
    assert row is not None and row.deleted_at is not None

    deleted_event = publisher.events()[-1]
    assert deleted_event.event_type == "company_deleted"
    assert deleted_event.company.model_dump() == {"id": created.id}

    with pytest.raises(NotFound):
        processor.get(created.id)
    with pytest.raises(NotFound):
        processor.delete(created.id)


def test_delete_publish_failure_is_not_an_error(processor, publisher):
    created = processor.create(CompanyCreate(**VALID_COMPANY)).company
    publisher.fail_all = True
    result = processor.delete(created.id)
    assert result.published is False
    assert publisher.attempts == 2


def test_delete_store_failure_is_persistence_failed(processor, monkeypatch):
    created = processor.create(CompanyCreate(**VALID_COMPANY)).company
    monkeypatch.setattr(company_crud, "soft_delete_company", _store_error)
    with pytest.raises(PersistenceFailed):
        processor.delete(created.id)


def _parse_only_once(monkeypatch):
    """Let the first id parse through and reject every later one."""
    real_parse = processor_module.parse_company_id
    calls = []

    def parse(raw, param="id"):
        calls.append(raw)
        if len(calls) > 1:
            raise InvalidIdentifier()
        return real_parse(raw, param)

    monkeypatch.setattr(processor_module, "parse_company_id", parse)
    return calls


def test_delete_skips_event_when_id_cannot_be_reparsed(processor, publisher, db, monkeypatch, caplog):
    created = processor.create(CompanyCreate(**VALID_COMPANY)).company
    calls = _parse_only_once(monkeypatch)

    result = processor.delete(created.id)

    assert len(calls) == 2
    assert result.company is None
    assert result.published is False
    assert publisher.attempts == 1
    assert db.get(Company, created.id).deleted_at is not None
    assert "not publishing" in caplog.text


def test_unexpected_publisher_error_is_not_an_error(processor, publisher, db, monkeypatch):
    def broken_publish(event):
        raise redis.ConnectionError("connection refused")

    monkeypatch.setattr(publisher, "publish", broken_publish)
    created = processor.create(CompanyCreate(**VALID_COMPANY))
    assert created.published is False
    assert company_crud.get_company(db, created.company.id) is not None

    updated = processor.update(created.company.id, CompanyUpdate(employees=0))
    assert updated.published is False
    assert updated.company.employees == 0

    deleted = processor.delete(created.company.id)
    assert deleted.published is False
    assert company_crud.get_company(db, created.company.id) is None
