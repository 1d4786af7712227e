from enum import Enum

from tortoise import fields

from resort_api.models.base import BaseModel


ENQUIRY_NAME_MAX_LENGTH = 255
ENQUIRY_PHONE_MAX_LENGTH = 50


class EnquirySubject(str, Enum):
    ENQUIRY = "enquiry"
    MEMBERSHIP = "membership"


class EnquiryStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class Enquiry(BaseModel):
    """
    Customer enquiry submitted through the public contact form

    ``email`` identifies the submitter but is not a link to a user account.
    Any status may be set by an admin at any time.
    """

    name = fields.CharField(max_length=ENQUIRY_NAME_MAX_LENGTH)
    email = fields.CharField(max_length=255, db_index=True)
    phone = fields.CharField(max_length=ENQUIRY_PHONE_MAX_LENGTH)
    date_of_plan = fields.DatetimeField()
    subject = fields.CharEnumField(EnquirySubject)
    message = fields.TextField()

    status = fields.CharEnumField(EnquiryStatus, default=EnquiryStatus.PENDING)
    assigned_to = fields.ForeignKeyField(
        "models.User",
        related_name="assigned_enquiries",
        null=True,
        on_delete=fields.SET_NULL,
    )

    class Meta:
        table = "enquiries"

    def __str__(self):
        return f"{self.subject.value} enquiry from {self.email} ({self.status.value})"
