import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from company_service.core.errors import InvalidCredentials, PersistenceFailed
from company_service.core.security import create_access_token, pwd_context, verify_password
from company_service.crud import user_crud

logger = logging.getLogger(__name__)


def authenticate(db: Session, username: str, password: str, secret: str) -> str:
    """Check the credentials and return a signed session token.

    Unknown usernames and wrong passwords raise the same InvalidCredentials.
    """
    logger.debug("Login attempt for username: %s", username)
    try:
        db_user = user_crud.get_user_by_username(db, username)
    except SQLAlchemyError as exc:
        logger.exception("User lookup failed")
        raise PersistenceFailed("could not look up user") from exc

    if db_user is None:
        logger.debug("User not found in database.")
        # unknown users pay the same bcrypt cost as wrong passwords
        pwd_context.dummy_verify()
        raise InvalidCredentials()
    if not verify_password(password, db_user.password):
        logger.debug("Password verification failed.")
        raise InvalidCredentials()

    logger.debug("Password verified successfully.")
    return create_access_token(db_user.username, secret)
