# labdash/routes/auth_routes.py
import os

from fastapi import APIRouter, Depends, HTTPException, Body, Response, status
from sqlalchemy.orm import Session

from labdash.db.session import get_db
from labdash.models.user import User
from labdash.auth.deps import AUTH_COOKIE_NAME, get_current_user
from labdash.auth.jwt import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    create_access_token,
    create_refresh_token,
    hash_password,
    verify_password,
    verify_refresh_token,
)
from labdash.auth.schemas import RefreshIn, UserCreate, UserLogin, UserOut

router = APIRouter(prefix="/api/auth", tags=["auth"])

COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false") or "false").lower() in {"1", "true", "yes", "on"}


def _set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        AUTH_COOKIE_NAME,
        token,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="lax",
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        path="/",
    )


def _session_payload(user: User, response: Response) -> dict:
    claims = {"sub": str(user.id), "email": user.email}
    access = create_access_token(claims)
    _set_auth_cookie(response, access)
    return {
        "success": True,
        "access_token": access,
        "refresh_token": create_refresh_token(claims),
        "token_type": "bearer",
        "user": UserOut.model_validate(user).model_dump(),
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(response: Response, payload: UserCreate = Body(...), db: Session = Depends(get_db)):
    email = str(payload.email).lower()
    existing = db.query(User).filter(User.email == email).first()
    if existing:
        raise HTTPException(status_code=409, detail="User with this email already exists")

    user = User(email=email, hashed_password=hash_password(payload.password), name=payload.name)
    db.add(user)
    db.commit()
    db.refresh(user)
    return _session_payload(user, response)


@router.post("/login")
def login(response: Response, payload: UserLogin = Body(...), db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == str(payload.email).lower()).first()
    if not user or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return _session_payload(user, response)


@router.get("/me")
def me(response: Response, user: User = Depends(get_current_user)):
    response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate"
    return {"success": True, "user": UserOut.model_validate(user).model_dump()}


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(AUTH_COOKIE_NAME, path="/")
    return {"success": True}


@router.post("/refresh")
def refresh(payload: RefreshIn, response: Response, db: Session = Depends(get_db)):
    """Exchange a refresh token for a new access token."""
    data = verify_refresh_token(payload.refresh_token)
    if not data or not data.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    user = db.query(User).filter(User.id == str(data["sub"])).first()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    access = create_access_token({"sub": str(user.id), "email": user.email})
    _set_auth_cookie(response, access)
    return {"access_token": access, "token_type": "bearer"}
