from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import AsyncGenerator, Optional

from ..core.config import Config
from ..db.database import AsyncSessionLocal
from ..exceptions import AuthenticationRequiredException, UnauthorizedException
from ..models.user import User


security = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Asynchronous dependency that provides a database session for FastAPI routes.

    Yields:
        AsyncSession: An instance of the asynchronous database session.

    Usage:
        Use as a dependency in FastAPI endpoints to access the database session.
        The session is automatically closed after the request is processed.
    """

    async with AsyncSessionLocal() as db:
        yield db


def decode_access_token(token: str) -> dict:
    """
    Decode and verify an access token issued by the auth service.

    Raises:
        AuthenticationRequiredException: If the token is malformed, expired or signed with another key.
    """
    try:
        return jwt.decode(token, Config.JWT_SECRET, algorithms=[Config.JWT_ALGORITHM])
    except JWTError:
        raise AuthenticationRequiredException("Invalid or expired token provided!")


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: AsyncSession = Depends(get_db),
) -> User:
    """
    Retrieve the current authenticated user based on the provided access token.

    Args:
        credentials: The bearer credentials from the Authorization header.
        session (AsyncSession): The asynchronous database session dependency.

    Returns:
        User: The user object corresponding to the email found in the token.

    Raises:
        AuthenticationRequiredException: If no token is sent, the token is invalid or the user no longer exists.
    """
    if credentials is None:
        raise AuthenticationRequiredException()

    payload = decode_access_token(credentials.credentials)
    user_email = (payload.get("user") or {}).get("email")
    if not user_email:
        raise AuthenticationRequiredException("Invalid or expired token provided!")

    result = await session.execute(select(User).where(User.email == user_email))
    user = result.scalars().first()
    if not user:
        raise AuthenticationRequiredException("User not found for the provided token")

    return user


def get_current_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise UnauthorizedException("Only admins can access this resource!")

    return user
