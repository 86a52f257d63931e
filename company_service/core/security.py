from datetime import datetime, timedelta, timezone

import jwt
from passlib.context import CryptContext

from company_service.core.errors import Unauthenticated

AUTH_COOKIE_NAME = "auth_token"
ACCESS_TOKEN_EXPIRE_MINUTES = 15
ALGORITHM = "HS256"
# Tokens signed with anything outside the HMAC family are rejected.
ACCEPTED_ALGORITHMS = ["HS256", "HS384", "HS512"]

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# 비밀번호 해싱
def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        # unrecognized or corrupt stored hash
        return False


def create_access_token(
    subject: str,
    secret: str,
    expires_delta: timedelta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
) -> str:
    now = datetime.now(timezone.utc)
    claims = {"sub": subject, "iat": now, "exp": now + expires_delta}
    return jwt.encode(claims, secret, algorithm=ALGORITHM)


def decode_access_token(token: str, secret: str) -> str:
    """Verify ``token`` and return its subject.

    Any problem (bad signature, foreign algorithm, expiry, missing claims)
    raises Unauthenticated with the same message.
    """
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=ACCEPTED_ALGORITHMS,
            options={"require": ["exp", "sub"]},
        )
    except jwt.InvalidTokenError as exc:
        raise Unauthenticated() from exc
    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise Unauthenticated()
    return subject
