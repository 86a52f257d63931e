from datetime import datetime, timezone
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from company_service.schemas.companies import CompanyOut, CompanyRef

COMPANY_CREATED = "company_created"
COMPANY_UPDATED = "company_updated"
COMPANY_DELETED = "company_deleted"

EventType = Literal["company_created", "company_updated", "company_deleted"]


def event_timestamp() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).strftime("%Y-%m-%dT%H:%M:%SZ")


class DomainEvent(BaseModel):
    """Immutable record of a company state change, as put on the bus."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    event_type: EventType = Field(alias="eventType")
    timestamp: str = Field(default_factory=event_timestamp)
    # full snapshot for created/updated, id-only stub for deleted
    company: Union[CompanyOut, CompanyRef]

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str) -> "DomainEvent":
        return cls.model_validate_json(raw)
