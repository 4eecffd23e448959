# backend/routes/auth.py
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy import func
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.users import User
from schemas import user as schemas
from utils.audit import write_log, client_ip
from utils.google_client import google_client, GoogleAuthError
from utils.hashing import get_password_hash, verify_password
from utils.mailer import send_password_reset, MailError
from utils.tokenJWT import create_access_token, get_current_user

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = logging.getLogger(__name__)

def _find_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()

def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


# Register a new user
@router.post("/register", response_model=schemas.Token, status_code=status.HTTP_201_CREATED)
def register(payload: schemas.UserCreate, request: Request, db: Session = Depends(get_db)):
    normalized_email = payload.email.strip().lower()

    if _find_by_email(db, normalized_email):
        write_log(db, user_id=None, action="REGISTER", resource="auth", status="FAIL",
                  ip=client_ip(request), meta={"email": normalized_email, "reason": "Email exists"})
        raise HTTPException(status_code=400, detail="Email already registered")

    new_user = User(
        email=normalized_email,
        password_hash=get_password_hash(payload.password),
        full_name=payload.full_name,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    write_log(db, user_id=new_user.id, action="REGISTER", resource="auth", status="SUCCESS",
              ip=client_ip(request), meta={"email": new_user.email})

    return {"token": create_access_token(new_user)}


# Authenticate user and issue JWT token
@router.post("/login", response_model=schemas.Token)
def login(payload: schemas.UserLogin, request: Request, db: Session = Depends(get_db)):
    db_user = _find_by_email(db, payload.email)

    # Validate credentials and log failure on error
    if not db_user or not verify_password(payload.password, db_user.password_hash):
        write_log(db, user_id=(db_user.id if db_user else None), action="LOGIN", resource="auth",
                  status="FAIL", ip=client_ip(request), meta={"email": payload.email})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    write_log(db, user_id=db_user.id, action="LOGIN", resource="auth",
              status="SUCCESS", ip=client_ip(request), meta={"email": db_user.email})

    return {"token": create_access_token(db_user)}


async def _google_sign_in(code: Optional[str], request: Request, db: Session) -> dict:
    if not code:
        raise HTTPException(status_code=400, detail="Missing or invalid authorization code")

    try:
        claims = await google_client.authenticate(code)
    except GoogleAuthError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (httpx.RequestError, httpx.HTTPStatusError):
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Login with Google failed")

    user = _find_by_email(db, claims["email"])
    if user is None:
        # Google-only accounts get an unusable random password
        user = User(
            email=claims["email"].strip().lower(),
            full_name=claims.get("name") or "",
            google_id=claims.get("sub"),
            password_hash=secrets.token_hex(32),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("Created user %s from Google sign-in", user.id)
    elif not user.google_id:
        user.google_id = claims.get("sub")
        db.commit()

    write_log(db, user_id=user.id, action="LOGIN_GOOGLE", resource="auth",
              status="SUCCESS", ip=client_ip(request), meta={"email": user.email})
    return {"token": create_access_token(user)}


# Sign in with a Google authorization code
@router.post("/google", response_model=schemas.Token)
async def google_login(payload: schemas.GoogleLogin, request: Request, db: Session = Depends(get_db)):
    return await _google_sign_in(payload.code, request, db)


# OAuth redirect target configured in the Google console
@router.get("/google/callback", response_model=schemas.Token)
async def google_callback(request: Request, code: Optional[str] = None, db: Session = Depends(get_db)):
    return await _google_sign_in(code, request, db)


# Issue a one-hour reset token and e-mail the reset link
@router.post("/forgot-password", response_model=schemas.Message)
def forgot_password(payload: schemas.ForgotPassword, request: Request, db: Session = Depends(get_db)):
    user = _find_by_email(db, payload.email)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    user.reset_token = secrets.token_hex(32)
    user.reset_token_expires = datetime.now(timezone.utc) + timedelta(minutes=settings.RESET_TOKEN_TTL_MINUTES)
    db.commit()

    try:
        sent = send_password_reset(user.email, user.reset_token)
    except MailError:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Could not send password reset email")

    if not sent:
        logger.warning("Password reset for user %s issued but no e-mail was sent", user.id)
        write_log(db, user_id=user.id, action="FORGOT_PASSWORD", resource="auth",
                  status="WARNING", ip=client_ip(request), meta={"mail": "not configured"})
        return {"message": "Password reset requested, but e-mail delivery is not configured"}

    write_log(db, user_id=user.id, action="FORGOT_PASSWORD", resource="auth",
              status="SUCCESS", ip=client_ip(request))
    return {"message": "Password reset email sent"}


@router.post("/reset-password", response_model=schemas.Message)
def reset_password(payload: schemas.ResetPassword, request: Request, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.reset_token == payload.token).first()
    if not user:
        raise HTTPException(status_code=400, detail="Invalid token")

    if user.reset_token_expires is None or datetime.now(timezone.utc) > _as_utc(user.reset_token_expires):
        raise HTTPException(status_code=400, detail="Token expired")

    user.password_hash = get_password_hash(payload.password)
    user.reset_token = None
    user.reset_token_expires = None
    db.commit()

    write_log(db, user_id=user.id, action="RESET_PASSWORD", resource="auth",
              status="SUCCESS", ip=client_ip(request))
    return {"message": "Password updated successfully"}


# Retrieve current authenticated user details
@router.get("/me", response_model=schemas.UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user
