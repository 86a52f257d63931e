from datetime import datetime, timezone
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


# Request bodies are decoded strictly: unknown keys and coerced types are rejected.
# Missing keys are left to the validators so the caller gets a rule-specific message.
class CompanyCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    name: Optional[str] = None
    description: Optional[str] = None
    employees: Optional[int] = None
    registered: Optional[bool] = None
    type: Optional[str] = None


# PATCH body; only the keys the caller sent reach the update validator
class CompanyUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    name: Optional[str] = None
    description: Optional[str] = None
    employees: Optional[int] = None
    registered: Optional[bool] = None
    type: Optional[str] = None

    def changed_fields(self) -> dict:
        return self.model_dump(exclude_unset=True)


class CompanyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    employees: int
    registered: bool
    type: str
    created_at: datetime = Field(
        validation_alias=AliasChoices("created_at", "createdAt"),
        serialization_alias="createdAt",
    )
    updated_at: datetime = Field(
        validation_alias=AliasChoices("updated_at", "updatedAt"),
        serialization_alias="updatedAt",
    )
    deleted_at: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("deleted_at", "deletedAt"),
        serialization_alias="deletedAt",
    )

    @field_validator("created_at", "updated_at", "deleted_at")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # some drivers hand back naive datetimes for timezone-aware columns
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class CompanyRef(BaseModel):
    id: str
