import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from company_service.core.security import get_password_hash
from company_service.models.user import User

logger = logging.getLogger(__name__)


# 아이디로 유저 조회 (대소문자 구분)
def get_user_by_username(db: Session, username: str):
    return db.query(User).filter(User.username == username).first()


# 유저 생성
def create_user(db: Session, username: str, password: str) -> User:
    db_user = User(username=username, password=get_password_hash(password))
    try:
        db.add(db_user)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(db_user)
    return db_user


def ensure_default_user(db: Session, username: str, password: str) -> bool:
    """Create the default admin account unless one already exists.

    Safe to call on every boot. Returns True when a user was created.
    """
    if get_user_by_username(db, username) is not None:
        logger.info("Default user %r already present", username)
        return False
    try:
        create_user(db, username, password)
    except IntegrityError:
        # 다른 워커가 먼저 생성함
        logger.info("Default user %r was created concurrently", username)
        return False
    logger.info("Created default user %r", username)
    return True
