from datetime import datetime, timezone
from typing import Dict, Optional

from resort_api.core.security import create_access_token
from resort_api.models import Enquiry, EnquiryStatus, EnquirySubject, User, UserRole

DEFAULT_PASSWORD = "password123"


async def make_user(
    username: str = "guest",
    email: Optional[str] = None,
    phone: str = "+919800000001",
    role: UserRole = UserRole.USER,
    is_active: bool = True,
    password: str = DEFAULT_PASSWORD,
) -> User:
    user = User(
        name=username.title(),
        username=username,
        email=email or f"{username}@resort.com",
        phone=phone,
        role=role,
        is_active=is_active,
    )
    user.set_password(password)
    await user.save()
    return user


def auth_headers(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(subject=user.id)}"}


async def make_enquiry(
    email: str = "visitor@resort.com",
    status: EnquiryStatus = EnquiryStatus.PENDING,
    subject: EnquirySubject = EnquirySubject.ENQUIRY,
    assigned_to: Optional[User] = None,
    name: str = "Visitor",
) -> Enquiry:
    return await Enquiry.create(
        name=name,
        email=email,
        phone="9876543210",
        date_of_plan=datetime(2024, 12, 25, tzinfo=timezone.utc),
        subject=subject,
        message="Do you have rooms with a sea view?",
        status=status,
        assigned_to=assigned_to,
    )


def registration_payload(**overrides) -> Dict[str, str]:
    payload = {
        "name": "Asha Naik",
        "username": "asha_n",
        "email": "asha@resort.com",
        "phone": "+91 (98) 765-43210",
        "password": DEFAULT_PASSWORD,
    }
    payload.update(overrides)
    return payload
