from enum import Enum

from tortoise import fields

from resort_api.models.base import BaseModel


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


ADDRESS_FIELDS = ("street", "city", "state", "zipCode", "country")

NAME_MAX_LENGTH = 100
PROFILE_PICTURE_MAX_LENGTH = 500


class User(BaseModel):
    """User account of a resort guest or staff administrator"""

    name = fields.CharField(max_length=NAME_MAX_LENGTH)
    username = fields.CharField(max_length=20, unique=True)
    email = fields.CharField(max_length=255, unique=True)
    phone = fields.CharField(max_length=20, unique=True)
    password_hash = fields.CharField(max_length=128)
    role = fields.CharEnumField(UserRole, default=UserRole.USER)

    is_active = fields.BooleanField(default=True)

    # Profile fields
    address = fields.JSONField(null=True)
    date_of_birth = fields.DateField(null=True)
    profile_picture = fields.CharField(max_length=PROFILE_PICTURE_MAX_LENGTH, null=True)

    class Meta:
        table = "users"

    def __str__(self):
        return f"{self.name} ({self.username})"

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def set_password(self, raw_password: str) -> None:
        """
        Store the bcrypt hash of a new password

        The plain value is never kept on the instance. Fields other than the
        password are saved without touching the stored hash.
        """
        from resort_api.core.security import get_password_hash

        self.password_hash = get_password_hash(raw_password)

    def check_password(self, raw_password: str) -> bool:
        from resort_api.core.security import verify_password

        return verify_password(raw_password, self.password_hash)
