import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from tortoise.expressions import Q

from resort_api.core.exceptions import AuthenticationError, ConflictError, ValidationError
from resort_api.core.security import (
    create_access_token,
    ensure_token_signing,
    get_current_admin_user,
    get_current_user,
)
from resort_api.models.users import (
    ADDRESS_FIELDS,
    NAME_MAX_LENGTH,
    PROFILE_PICTURE_MAX_LENGTH,
    User,
    UserRole,
)
from resort_api.schemas.user import (
    AuthResponse,
    UserEnvelope,
    UserListResponse,
    UserLogin,
    UserMessageResponse,
    UserProfileUpdate,
    UserRegister,
    UserResponse,
)
from resort_api.utils.validators import (
    normalize_phone_number,
    parse_date,
    validate_email,
    validate_max_length,
    validate_name,
    validate_password,
    validate_phone_number,
    validate_required_fields,
    validate_username,
)

logger = logging.getLogger(__name__)

# Create users router
router = APIRouter(prefix="/users", tags=["users"])


def _validate_new_user(user_in: UserRegister) -> Dict[str, str]:
    """
    Validate a registration payload and return the normalized values

    Raises:
        ValidationError: On the first field that fails, in a fixed order
    """
    if not validate_required_fields(
        user_in.name, user_in.username, user_in.email, user_in.phone, user_in.password
    ):
        raise ValidationError("All required fields must be provided")

    is_valid, error = validate_name(user_in.name, NAME_MAX_LENGTH)
    if not is_valid:
        raise ValidationError(error)

    if not validate_email(user_in.email):
        raise ValidationError("Please provide a valid email address")

    phone = normalize_phone_number(user_in.phone)
    if not validate_phone_number(phone):
        raise ValidationError("Please provide a valid phone number")

    is_valid, error = validate_username(user_in.username)
    if not is_valid:
        raise ValidationError(error)

    is_valid, error = validate_password(user_in.password)
    if not is_valid:
        raise ValidationError(error)

    return {
        "name": user_in.name.strip(),
        "username": user_in.username.lower(),
        "email": user_in.email.strip().lower(),
        "phone": phone,
        "password": user_in.password,
    }


async def _check_new_user_conflicts(data: Dict[str, str]) -> None:
    # Email and username share one lookup; email wins when both collide
    existing_user = await User.filter(
        Q(email=data["email"]) | Q(username=data["username"])
    ).first()
    if existing_user:
        if existing_user.email == data["email"]:
            raise ConflictError("Email already registered")
        raise ConflictError("Username already taken")

    if await User.filter(phone=data["phone"]).exists():
        raise ConflictError("Phone number already registered")


async def _create_user(data: Dict[str, str], role: UserRole) -> User:
    user = User(
        name=data["name"],
        username=data["username"],
        email=data["email"],
        phone=data["phone"],
        role=role,
        is_active=True,
    )
    user.set_password(data["password"])
    await user.save()
    return user


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(user_in: UserRegister) -> Any:
    """
    Register a new user and sign them in
    """
    data = _validate_new_user(user_in)
    await _check_new_user_conflicts(data)

    # Refuse before persisting when tokens cannot be issued
    ensure_token_signing()

    user = await _create_user(data, role=UserRole.USER)
    token = create_access_token(subject=user.id)

    logger.info("User registered: %s", user.username)
    return {
        "message": "User registered successfully",
        "user": UserResponse.model_validate(user),
        "token": token,
    }


@router.post("/login", response_model=AuthResponse)
async def login(user_in: UserLogin) -> Any:
    """
    Log in with either the email address or the username
    """
    if not validate_required_fields(user_in.email_or_username, user_in.password):
        raise ValidationError("Email/Username and password are required")

    identifier = user_in.email_or_username.strip().lower()
    user = await User.filter(Q(email=identifier) | Q(username=identifier)).first()

    if user is None:
        logger.info("Login rejected: unknown account")
        raise AuthenticationError("Invalid credentials")

    if not user.is_active:
        logger.info("Login rejected: deactivated account %s", user.username)
        raise AuthenticationError("Account is deactivated")

    if not user.check_password(user_in.password):
        logger.info("Login rejected: wrong password for %s", user.username)
        raise AuthenticationError("Invalid credentials")

    token = create_access_token(subject=user.id)

    return {
        "message": "Login successful",
        "user": UserResponse.model_validate(user),
        "token": token,
    }


@router.get("/profile", response_model=UserEnvelope)
async def read_profile(
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Get current user
    """
    return {"user": UserResponse.model_validate(current_user)}


@router.put("/profile", response_model=UserMessageResponse)
async def update_profile(
    user_in: UserProfileUpdate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Update current user; fields missing from the body are left untouched
    """
    updates = user_in.model_dump(exclude_unset=True)

    if "name" in updates:
        is_valid, error = validate_name(updates["name"], NAME_MAX_LENGTH)
        if not is_valid:
            raise ValidationError(error)
        current_user.name = updates["name"].strip()

    if "email" in updates:
        email = updates["email"]
        if not validate_email(email):
            raise ValidationError("Please provide a valid email address")
        email = email.strip().lower()
        if await User.filter(email=email).exclude(id=current_user.id).exists():
            raise ConflictError("Email already registered by another user")
        current_user.email = email

    if "phone" in updates:
        phone = updates["phone"]
        phone = normalize_phone_number(phone) if isinstance(phone, str) else None
        if not validate_phone_number(phone):
            raise ValidationError("Please provide a valid phone number")
        if await User.filter(phone=phone).exclude(id=current_user.id).exists():
            raise ConflictError("Phone number already registered by another user")
        current_user.phone = phone

    if "username" in updates:
        username = updates["username"]
        is_valid, error = validate_username(username)
        if not is_valid:
            raise ValidationError(error)
        username = username.lower()
        if await User.filter(username=username).exclude(id=current_user.id).exists():
            raise ConflictError("Username already taken")
        current_user.username = username

    if "address" in updates:
        current_user.address = _normalize_address(updates["address"])

    if "date_of_birth" in updates:
        date_of_birth = updates["date_of_birth"]
        if date_of_birth:
            parsed = parse_date(date_of_birth)
            if parsed is None:
                raise ValidationError("Please provide a valid date of birth")
            current_user.date_of_birth = parsed.date()
        else:
            current_user.date_of_birth = None

    if "profile_picture" in updates:
        is_valid, error = validate_max_length(
            updates["profile_picture"], PROFILE_PICTURE_MAX_LENGTH, "Profile picture URL"
        )
        if not is_valid:
            raise ValidationError(error)
        current_user.profile_picture = updates["profile_picture"]

    await current_user.save()

    return {
        "message": "Profile updated successfully",
        "user": UserResponse.model_validate(current_user),
    }


def _normalize_address(address: Any) -> Dict[str, str]:
    """
    Store an address object with every part present, or a bare string as the street
    """
    if isinstance(address, str):
        normalized = dict.fromkeys(ADDRESS_FIELDS, "")
        normalized["street"] = address.strip()
        return normalized

    address = address or {}
    return {
        "street": address.get("street") or "",
        "city": address.get("city") or "",
        "state": address.get("state") or "",
        "zipCode": address.get("zip_code") or "",
        "country": address.get("country") or "",
    }


@router.get("/all", response_model=UserListResponse)
async def list_users(
    admin_user: User = Depends(get_current_admin_user),
) -> Any:
    """
    List users (admin only)
    """
    users = await User.all().order_by("created_at")
    return {"users": [UserResponse.model_validate(user) for user in users]}


@router.post("/admin", response_model=UserMessageResponse, status_code=status.HTTP_201_CREATED)
async def create_admin(
    user_in: UserRegister,
    admin_user: User = Depends(get_current_admin_user),
) -> Any:
    """
    Create another admin user (admin only)
    """
    data = _validate_new_user(user_in)
    await _check_new_user_conflicts(data)

    user = await _create_user(data, role=UserRole.ADMIN)

    logger.info("Admin user %s created by %s", user.username, admin_user.username)
    return {
        "message": "Admin user created successfully",
        "user": UserResponse.model_validate(user),
    }
