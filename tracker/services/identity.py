from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from tracker.config import settings
from tracker.database import utcnow
from tracker.exceptions import BadRequestError, EmailDeliveryError, NotFoundError, UnauthorizedError
from tracker.models.user import User
from tracker.schemas.user import UserCreate, UserUpdate
from tracker.utils import email as mailer
from tracker.utils.logger import get_logger
from tracker.utils.security import generate_token, get_password_hash, hash_token, verify_password

logger = get_logger("identity")


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).filter(User.email == email))
    return result.scalars().first()


async def register_user(db: AsyncSession, data: UserCreate) -> User:
    if await get_user_by_email(db, data.email):
        raise BadRequestError("User already exists")

    user = User(
        name=data.name,
        email=data.email,
        avatar=data.avatar,
        hashed_password=get_password_hash(data.password),
        role="developer",
    )
    db.add(user)
    await db.flush()
    logger.info("User registered", extra={"user_id": user.id})
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> User:
    user = await get_user_by_email(db, email)
    if not user or not verify_password(password, user.hashed_password):
        raise UnauthorizedError("Invalid email and password")
    return user


async def update_profile(db: AsyncSession, user: User, data: UserUpdate) -> User:
    if data.email and data.email != user.email:
        if await get_user_by_email(db, data.email):
            raise BadRequestError("Email is already registered")
        user.email = data.email
    if data.name:
        user.name = data.name
    if data.avatar:
        user.avatar = data.avatar
    if data.password:
        user.hashed_password = get_password_hash(data.password)

    await db.flush()
    return user


async def forgot_password(db: AsyncSession, email: str):
    """
    Issue a reset token and email the reset link.

    Only the sha256 of the token is stored. When the email cannot be sent the
    token is cleared again before the error is raised.
    """
    user = await get_user_by_email(db, email)
    if not user:
        raise NotFoundError("User not found with this email")

    token = generate_token()
    user.reset_password_token = hash_token(token)
    user.reset_password_expire = utcnow() + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)
    await db.commit()

    reset_url = f"{settings.FRONTEND_URL}/reset-password/{token}"
    html = mailer.link_email_body(
        "You are receiving this email because you (or someone else) has requested "
        "to reset your password. Click the link below to proceed:",
        reset_url,
        "If you did not request this, please ignore this email.",
    )

    try:
        await mailer.send_email_async(user.email, "Password reset token", html)
    except EmailDeliveryError as e:
        user.reset_password_token = None
        user.reset_password_expire = None
        await db.commit()
        raise EmailDeliveryError(f"Email could not be sent. Error: {e.message}") from e

    logger.info("Password reset email sent", extra={"user_id": user.id})


async def reset_password(db: AsyncSession, token: str, password: str) -> User:
    result = await db.execute(
        select(User).filter(
            User.reset_password_token == hash_token(token),
            User.reset_password_expire > utcnow(),
        )
    )
    user = result.scalars().first()
    if not user:
        raise BadRequestError("Invalid token or token has expired")

    user.hashed_password = get_password_hash(password)
    user.reset_password_token = None
    user.reset_password_expire = None
    await db.flush()
    logger.info("Password reset", extra={"user_id": user.id})
    return user
