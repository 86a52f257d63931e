"""Business rules for company payloads.

Creation validates a complete object; updates validate only the fields the
caller sent. Both raise ValidationFailed with a message naming the field.
"""
from company_service.core.errors import ValidationFailed
from company_service.models.companies import COMPANY_TYPES, DESCRIPTION_MAX_LENGTH, NAME_MAX_LENGTH
from company_service.schemas.companies import CompanyCreate

NAME_RULE = f"Invalid 'Name': it is required and must be at most {NAME_MAX_LENGTH} characters"
DESCRIPTION_RULE = f"Invalid 'Description': it must be at most {DESCRIPTION_MAX_LENGTH} characters"
EMPLOYEES_CREATE_RULE = "Invalid 'Employees': it must be a positive number"
EMPLOYEES_UPDATE_RULE = "Invalid 'Employees': it must be zero or a positive number"
REGISTERED_CREATE_RULE = "Invalid 'Registered': it is required and must be true"
REGISTERED_UPDATE_RULE = "Invalid 'Registered': it must be a boolean"
TYPE_REQUIRED_RULE = "Invalid 'Type': it is required"
TYPE_ENUM_RULE = "Invalid 'Type': must be one of " + ", ".join(f"'{t}'" for t in COMPANY_TYPES)


def _check_name(name) -> None:
    if not isinstance(name, str) or name == "" or len(name) > NAME_MAX_LENGTH:
        raise ValidationFailed(NAME_RULE)


def _check_description(description) -> None:
    if description is not None and (
        not isinstance(description, str) or len(description) > DESCRIPTION_MAX_LENGTH
    ):
        raise ValidationFailed(DESCRIPTION_RULE)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_type(company_type) -> None:
    if company_type is None or company_type == "":
        raise ValidationFailed(TYPE_REQUIRED_RULE)
    if company_type not in COMPANY_TYPES:
        raise ValidationFailed(TYPE_ENUM_RULE)


def validate_for_create(candidate: CompanyCreate) -> None:
    # Order matters: the first failing rule is the one reported.
    _check_name(candidate.name)
    if not _is_int(candidate.employees) or candidate.employees <= 0:
        raise ValidationFailed(EMPLOYEES_CREATE_RULE)
    # TODO: confirm whether unregistered companies should be creatable; creation rejects them for now
    if candidate.registered is not True:
        raise ValidationFailed(REGISTERED_CREATE_RULE)
    _check_type(candidate.type)
    _check_description(candidate.description)


def validate_for_update(fields: dict) -> None:
    """Validate a sparse update. Absent fields are fine; unknown keys are ignored."""
    if "name" in fields:
        _check_name(fields["name"])
    if "description" in fields:
        _check_description(fields["description"])
    if "employees" in fields:
        employees = fields["employees"]
        if not _is_int(employees) or employees < 0:
            raise ValidationFailed(EMPLOYEES_UPDATE_RULE)
    if "registered" in fields and not isinstance(fields["registered"], bool):
        raise ValidationFailed(REGISTERED_UPDATE_RULE)
    if "type" in fields:
        _check_type(fields["type"])
