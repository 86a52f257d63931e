import re
import uuid

from company_service.core.errors import InvalidIdentifier

_CANONICAL_UUID = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)


def new_company_id() -> str:
    return str(uuid.uuid4())


def parse_company_id(raw: str, param: str = "id") -> str:
    """Return the canonical lowercase form of ``raw`` or raise InvalidIdentifier.

    Only the five-group hyphenated form is accepted; braces, ``urn:uuid:``
    prefixes and bare hex are rejected.
    """
    if not isinstance(raw, str) or not _CANONICAL_UUID.match(raw):
        raise InvalidIdentifier(f"the parameter {param} is not UUID")
    return str(uuid.UUID(raw))
