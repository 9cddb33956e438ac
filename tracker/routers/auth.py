from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession
from tracker.dependencies import get_db, get_current_user
from tracker.models.user import User as UserModel
from tracker.schemas.user import (
    AuthResponse, ForgotPasswordRequest, ResetPasswordRequest, Token,
    UserCreate, UserLogin, UserResponse, UserUpdate,
)
from tracker.services import identity
from tracker.utils.pagination import envelope
from tracker.utils.security import token_for_user

router = APIRouter(prefix="/auth", tags=["auth"])


def auth_payload(user: UserModel) -> AuthResponse:
    return AuthResponse(
        **UserResponse.model_validate(user).model_dump(),
        token=token_for_user(user),
    )


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(data: UserCreate, db: AsyncSession = Depends(get_db)):
    user = await identity.register_user(db, data)
    await db.commit()
    return envelope(auth_payload(user))


@router.post("/login")
async def login(data: UserLogin, db: AsyncSession = Depends(get_db)):
    user = await identity.authenticate(db, data.email, data.password)
    return envelope(auth_payload(user))


# OAuth2 password form for the interactive docs; username carries the email
@router.post("/token", response_model=Token)
async def login_for_access_token(
    db: AsyncSession = Depends(get_db),
    form_data: OAuth2PasswordRequestForm = Depends()
):
    user = await identity.authenticate(db, form_data.username, form_data.password)
    return {"access_token": token_for_user(user), "token_type": "bearer"}


@router.get("/profile")
async def get_profile(current_user: UserModel = Depends(get_current_user)):
    return envelope(UserResponse.model_validate(current_user))


@router.put("/profile")
async def update_profile(
    data: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user)
):
    user = await identity.update_profile(db, current_user, data)
    await db.commit()
    return envelope(auth_payload(user))


@router.post("/forgotpassword")
async def forgot_password(data: ForgotPasswordRequest, db: AsyncSession = Depends(get_db)):
    await identity.forgot_password(db, data.email)
    return envelope(message="Email sent")


@router.put("/resetpassword/{token}")
async def reset_password(token: str, data: ResetPasswordRequest, db: AsyncSession = Depends(get_db)):
    user = await identity.reset_password(db, token, data.password)
    await db.commit()
    return envelope(message="Password updated successfully", token=token_for_user(user))
