from datetime import timedelta
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from greendata.core.database import get_db
from greendata.core.security import verify_password, get_password_hash, create_access_token, get_current_user
from greendata.core.config import settings
from greendata.models.user import Profile, Role
from greendata.schemas.user import ProfileCreate, ProfileOut, RefreshRequest, TokenResponse
from jose import JWTError, jwt

router = APIRouter(prefix="/auth", tags=["Authentication"])

def _issue_tokens(email: str) -> TokenResponse:
    access_token = create_access_token(data={"sub": email})
    refresh_token = create_access_token(
        data={"sub": email, "type": "refresh"},
        expires_delta=timedelta(minutes=settings.REFRESH_TOKEN_EXPIRE_MINUTES),
    )
    return TokenResponse(access_token=access_token, refresh_token=refresh_token)

@router.post("/register", response_model=ProfileOut, status_code=201)
async def register(user_in: ProfileCreate, db: AsyncSession = Depends(get_db)):
    # Check if user exists
    existing_user = await db.scalar(select(Profile).where(Profile.email == user_in.email))
    if existing_user:
        raise HTTPException(status_code=400, detail="Email already registered")

    role = Role.ADMIN if user_in.email.lower() in settings.admin_emails else Role.USER
    user = Profile(
        email=user_in.email,
        full_name=user_in.full_name,
        hashed_password=get_password_hash(user_in.password),
        role=role
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user

@router.post("/login", response_model=TokenResponse)
async def login(form_data: OAuth2PasswordRequestForm = Depends(), db: AsyncSession = Depends(get_db)):
    user = await db.scalar(select(Profile).where(Profile.email == form_data.username))
    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _issue_tokens(user.email)

@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(body: RefreshRequest, db: AsyncSession = Depends(get_db)):
    try:
        payload = jwt.decode(body.refresh_token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=400, detail="Invalid refresh token")
    if payload.get("type") != "refresh":
        raise HTTPException(status_code=400, detail="Invalid refresh token")

    user = await db.scalar(select(Profile).where(Profile.email == payload.get("sub")))
    if not user:
        raise HTTPException(status_code=400, detail="User not found")

    access_token = create_access_token(data={"sub": user.email})
    return TokenResponse(access_token=access_token, refresh_token=body.refresh_token)

@router.get("/me", response_model=ProfileOut)
async def me(current_user: Profile = Depends(get_current_user)):
    return current_user
