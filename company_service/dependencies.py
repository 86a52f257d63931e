from fastapi import Depends, Request
from sqlalchemy.orm import Session

from company_service.core.config import Settings, get_settings
from company_service.core.errors import Unauthenticated
from company_service.core.security import AUTH_COOKIE_NAME, decode_access_token
from company_service.db.database import get_db
from company_service.services.company_service import CompanyCommandProcessor
from company_service.services.event_publisher import EventPublisher


def get_event_publisher(request: Request) -> EventPublisher:
    return request.app.state.event_publisher


def get_command_processor(
    db: Session = Depends(get_db),
    publisher: EventPublisher = Depends(get_event_publisher),
) -> CompanyCommandProcessor:
    return CompanyCommandProcessor(db, publisher)


async def get_current_user(request: Request, settings: Settings = Depends(get_settings)) -> str:
    """Session gate: returns the username carried by a valid auth cookie.

    No store lookup; the token alone decides. Missing, forged and expired
    tokens all raise the same Unauthenticated.
    """
    token = request.cookies.get(AUTH_COOKIE_NAME)
    if not token:
        raise Unauthenticated()
    return decode_access_token(token, settings.jwt_secret)
