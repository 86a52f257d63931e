from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from company_service.core.config import Settings, get_settings
from company_service.core.security import ACCESS_TOKEN_EXPIRE_MINUTES, AUTH_COOKIE_NAME
from company_service.db.database import get_db
from company_service.schemas.user import LoginResponse, UserLogin
from company_service.services.auth_service import authenticate

router = APIRouter(tags=["user"])


# 로그인 (JWT 발급)
@router.post("/login", response_model=LoginResponse)
def login(
    form_data: UserLogin,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    access_token = authenticate(db, form_data.username, form_data.password, settings.jwt_secret)

    # 쿠키 설정: 15분 고정 만료, 갱신 없음
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=access_token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return {"message": "Login successful"}
