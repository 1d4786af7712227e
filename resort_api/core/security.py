import logging
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional, Union

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from resort_api.core.config import settings
from resort_api.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    TokenConfigurationError,
)
from resort_api.models.users import User, UserRole
from resort_api.utils.logging_utils import bind_log_context

logger = logging.getLogger(__name__)


# Password hashing
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

# Bearer token transport; missing headers are reported by get_current_user
bearer_scheme = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against a hash

    Args:
        plain_password: Plain-text password
        hashed_password: Hashed password to compare against

    Returns:
        True if password matches hash, False otherwise (including an
        unreadable stored hash)
    """
    if not plain_password or not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        logger.warning("Stored password hash could not be read")
        return False


def get_password_hash(password: str) -> str:
    """
    Hash a password

    Args:
        password: Plain-text password to hash

    Returns:
        Hashed password
    """
    return pwd_context.hash(password)


def ensure_token_signing() -> str:
    """
    Return the signing key, refusing to continue when none is configured

    Raises:
        TokenConfigurationError: If RESORT_JWT_SECRET is not set
    """
    if not settings.JWT_SECRET:
        logger.error("Token requested but RESORT_JWT_SECRET is not configured")
        raise TokenConfigurationError()
    return settings.JWT_SECRET


def create_access_token(subject: Union[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token

    Args:
        subject: Subject of the token (the user ID)
        expires_delta: Optional expiration time delta

    Returns:
        Encoded JWT token
    """
    secret = ensure_token_signing()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta

    to_encode = {"exp": expire, "sub": str(subject)}
    return jwt.encode(to_encode, secret, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> str:
    """
    Validate a JWT access token and return its subject

    Every failure (bad structure, signature, expiry, missing key) raises the
    same error so callers cannot tell them apart.

    Raises:
        AuthenticationError: If the token cannot be trusted
    """
    if not settings.JWT_SECRET or not token:
        raise AuthenticationError()
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise AuthenticationError()

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError()
    return user_id


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> User:
    """
    Get the current user from the bearer token

    Raises:
        AuthenticationError: If the token is missing or invalid, the user no
            longer exists, or the account is deactivated
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access denied. No token provided.")

    user_id = decode_access_token(credentials.credentials)

    try:
        user = await User.get_or_none(id=user_id)
    except (ValueError, TypeError):
        # Subject that is not a UUID
        user = None
    if user is None:
        raise AuthenticationError()

    if not user.is_active:
        raise AuthenticationError("Account is deactivated")

    bind_log_context(user_id=str(user.id))
    return user


class RoleChecker:
    """
    Check if the authenticated user has one of the allowed roles

    Example:
        allow_admins = RoleChecker([UserRole.ADMIN])

        @router.get("/users/all")
        async def list_users(current_user: User = Depends(allow_admins)):
            ...
    """

    def __init__(self, allowed_roles: List[UserRole]):
        self.allowed_roles = allowed_roles

    async def __call__(self, user: User = Depends(get_current_user)) -> User:
        if user.role not in self.allowed_roles:
            raise AuthorizationError()
        return user


def require_role(role: UserRole) -> RoleChecker:
    return RoleChecker([role])


get_current_admin_user = require_role(UserRole.ADMIN)
