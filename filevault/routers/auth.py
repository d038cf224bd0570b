# Filename: filevault/routers/auth.py
from fastapi import APIRouter, Depends, HTTPException, status, Response
from fastapi.security import OAuth2PasswordRequestForm
import logging

from ..models import User
from ..repository import VaultRepository, get_repository
from ..schemas import Token, UserCreate, UserOut, LoginRequest
from ..auth import get_password_hash, create_access_token, authenticate_user, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(user_in: UserCreate, repo: VaultRepository = Depends(get_repository)):
    # username and email are both unique
    if repo.find_user_conflict(user_in.username, user_in.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username or email already registered")
    hashed = get_password_hash(user_in.password)
    user = repo.create_user(user_in.username, user_in.email, hashed)
    logger.info("Registered user %s (%s)", user.id, user.username)
    return user


@router.post("/token", response_model=Token)
def login_token(form_data: OAuth2PasswordRequestForm = Depends(), repo: VaultRepository = Depends(get_repository)):
    user = authenticate_user(repo, form_data.username, form_data.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect username or password", headers={"WWW-Authenticate": "Bearer"})
    token = create_access_token(user.username)
    return {"access_token": token, "token_type": "bearer"}


# JSON login that sets HttpOnly cookie (works for browsers)
@router.post("/login-cookie")
def login_cookie(response: Response, data: LoginRequest, repo: VaultRepository = Depends(get_repository)):
    user = authenticate_user(repo, data.username, data.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect username or password")
    token = create_access_token(user.username)
    # set cookie: httponly, secure should be True in prod (HTTPS)
    max_age = 60 * 60 * 24 * 30 if data.remember else None  # 30 days or session cookie
    response.set_cookie("access_token", token, httponly=True, secure=False, samesite="lax", max_age=max_age)
    return {"status": "ok"}


# Logout clears cookie
@router.post("/logout-cookie")
def logout_cookie(response: Response):
    response.delete_cookie("access_token")
    return {"status": "ok"}


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)):
    return current_user
