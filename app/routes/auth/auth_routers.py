from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.rate_limit import auth_limiter, email_verification_limiter, password_reset_limiter
from app.core.security import get_current_user
from app.models.user_db.user_db import User
from app.schemas.login.login_base import AccessTokenResponse, AuthResponse, LoginRequest, LogoutRequest, \
    MessageResponse, PasswordResetConfirm, PasswordResetRequest, RefreshRequest, RegisterRequest, \
    ResendVerificationRequest, VerifyEmailRequest
from app.schemas.users.user_out import UserOut
from app.services import auth as auth_service

auth_router = APIRouter(prefix="/auth", tags=["Auth"])


@auth_router.post("/register", response_model=AuthResponse, status_code=201, dependencies=[Depends(auth_limiter)])
async def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    return await auth_service.register_user(db, payload.email, payload.password, payload.full_name)


@auth_router.post("/login", response_model=AuthResponse, dependencies=[Depends(auth_limiter)])
async def login(payload: LoginRequest, db: Session = Depends(get_db)):
    return await auth_service.login_user(db, payload.email, payload.password)


@auth_router.post("/refresh", response_model=AccessTokenResponse)
async def refresh(payload: RefreshRequest, db: Session = Depends(get_db)):
    return await auth_service.refresh_access_token(db, payload.refresh_token)


@auth_router.post("/logout", response_model=MessageResponse)
async def logout(payload: LogoutRequest, db: Session = Depends(get_db)):
    await auth_service.logout_user(db, payload.refresh_token)
    return {"message": "Logged out"}


@auth_router.post("/request-password-reset", response_model=MessageResponse,
                  dependencies=[Depends(password_reset_limiter)])
async def request_password_reset(payload: PasswordResetRequest, db: Session = Depends(get_db)):
    await auth_service.request_password_reset(db, payload.email)
    return {"message": "If an account exists for this email, a reset link has been sent"}


@auth_router.post("/reset-password", response_model=MessageResponse, dependencies=[Depends(password_reset_limiter)])
async def reset_password(payload: PasswordResetConfirm, db: Session = Depends(get_db)):
    await auth_service.reset_password(db, payload.token, payload.new_password)
    return {"message": "Password has been reset"}


@auth_router.post("/verify-email", response_model=MessageResponse)
async def verify_email(payload: VerifyEmailRequest, db: Session = Depends(get_db)):
    await auth_service.verify_email(db, payload.token)
    return {"message": "Email verified"}


@auth_router.post("/resend-verification", response_model=MessageResponse,
                  dependencies=[Depends(email_verification_limiter)])
async def resend_verification(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    await auth_service.resend_verification(db, current_user)
    return {"message": "Verification email sent"}


@auth_router.post("/resend-verification-by-email", response_model=MessageResponse,
                  dependencies=[Depends(email_verification_limiter)])
async def resend_verification_by_email(payload: ResendVerificationRequest, db: Session = Depends(get_db)):
    await auth_service.resend_verification_by_email(db, payload.email)
    return {"message": "If the account needs verification, an email has been sent"}


@auth_router.get("/me", response_model=UserOut)
def get_me(current_user: User = Depends(get_current_user)):
    return current_user
