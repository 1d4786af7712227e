import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Type
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from tortoise.functions import Count

from resort_api.core.exceptions import NotFoundError, ValidationError
from resort_api.core.security import get_current_admin_user, get_current_user
from resort_api.models.enquiry import (
    ENQUIRY_NAME_MAX_LENGTH,
    ENQUIRY_PHONE_MAX_LENGTH,
    Enquiry,
    EnquiryStatus,
    EnquirySubject,
)
from resort_api.models.users import User
from resort_api.schemas.base import MessageResponse
from resort_api.schemas.enquiry import (
    EnquiryCreate,
    EnquiryEnvelope,
    EnquiryListResponse,
    EnquiryMessageResponse,
    EnquiryResponse,
    EnquiryStats,
    EnquiryStatusUpdate,
    GroupCount,
    RecentEnquiry,
)
from resort_api.utils.pagination import PageParams, get_page_params, paginate_queryset, total_pages
from resort_api.utils.validators import (
    parse_date,
    validate_email,
    validate_max_length,
    validate_required_fields,
)

logger = logging.getLogger(__name__)

# Create enquiries router
router = APIRouter(prefix="/enquiries", tags=["enquiries"])

ENQUIRY_FIELDS = (
    "id", "name", "email", "phone", "date_of_plan", "subject",
    "message", "status", "created_at", "updated_at",
)

RECENT_ENQUIRIES_LIMIT = 5


def _parse_choice(value: str, enum_cls: Type[Enum], label: str) -> Enum:
    try:
        return enum_cls(value.strip())
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"{label} must be one of: {choices}")


async def _load_assignees(enquiries: Iterable[Enquiry]) -> Dict[str, User]:
    """Fetch the users referenced by assigned_to in one query"""
    ids = {str(e.assigned_to_id) for e in enquiries if e.assigned_to_id is not None}
    if not ids:
        return {}
    return {str(user.id): user for user in await User.filter(id__in=list(ids))}


def _serialize(enquiry: Enquiry, assignees: Dict[str, User], schema=EnquiryResponse):
    payload = {field: getattr(enquiry, field) for field in ENQUIRY_FIELDS}
    assignee_id = enquiry.assigned_to_id
    payload["assigned_to"] = assignees.get(str(assignee_id)) if assignee_id is not None else None
    return schema.model_validate(payload)


async def _serialize_many(enquiries: List[Enquiry], schema=EnquiryResponse) -> list:
    assignees = await _load_assignees(enquiries)
    return [_serialize(enquiry, assignees, schema) for enquiry in enquiries]


async def _serialize_one(enquiry: Enquiry) -> EnquiryResponse:
    return (await _serialize_many([enquiry]))[0]


async def _get_enquiry_or_404(enquiry_id: UUID) -> Enquiry:
    enquiry = await Enquiry.get_or_none(id=enquiry_id)
    if enquiry is None:
        raise NotFoundError("Enquiry not found")
    return enquiry


async def _paginated_response(queryset, page_params: PageParams) -> Dict[str, Any]:
    enquiries, total = await paginate_queryset(queryset, page_params)
    return {
        "enquiries": await _serialize_many(enquiries),
        "total_pages": total_pages(total, page_params.limit),
        "current_page": page_params.page,
        "total": total,
    }


@router.post("", response_model=EnquiryMessageResponse, status_code=status.HTTP_201_CREATED)
async def create_enquiry(enquiry_in: EnquiryCreate) -> Any:
    """
    Submit an enquiry (public, no account needed)
    """
    if not validate_required_fields(
        enquiry_in.name,
        enquiry_in.email,
        enquiry_in.phone,
        enquiry_in.date_of_plan,
        enquiry_in.subject,
        enquiry_in.message,
    ):
        raise ValidationError("All fields are required")

    for value, max_length, label in (
        (enquiry_in.name.strip(), ENQUIRY_NAME_MAX_LENGTH, "Name"),
        (enquiry_in.phone.strip(), ENQUIRY_PHONE_MAX_LENGTH, "Phone number"),
    ):
        is_valid, error = validate_max_length(value, max_length, label)
        if not is_valid:
            raise ValidationError(error)

    if not validate_email(enquiry_in.email):
        raise ValidationError("Please provide a valid email address")

    plan_date = parse_date(enquiry_in.date_of_plan)
    if plan_date is None:
        raise ValidationError("Please provide a valid date for your plan")

    subject = _parse_choice(enquiry_in.subject, EnquirySubject, "Subject")

    enquiry = await Enquiry.create(
        name=enquiry_in.name.strip(),
        email=enquiry_in.email.strip().lower(),
        phone=enquiry_in.phone.strip(),
        date_of_plan=plan_date,
        subject=subject,
        message=enquiry_in.message.strip(),
        status=EnquiryStatus.PENDING,
    )

    logger.info("Enquiry %s submitted (%s)", enquiry.id, subject.value)
    return {
        "message": "Enquiry submitted successfully",
        "enquiry": await _serialize_one(enquiry),
    }


@router.get("/my-enquiries", response_model=EnquiryListResponse)
async def list_my_enquiries(
    page_params: PageParams = Depends(get_page_params),
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    List enquiries submitted with the caller's account email
    """
    return await _paginated_response(Enquiry.filter(email=current_user.email), page_params)


@router.get("", response_model=EnquiryListResponse)
async def list_enquiries(
    page_params: PageParams = Depends(get_page_params),
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by status"),
    subject: Optional[str] = Query(None, description="Filter by subject"),
    admin_user: User = Depends(get_current_admin_user),
) -> Any:
    """
    List all enquiries, newest first (admin only)
    """
    query = Enquiry.all()

    if status_filter:
        query = query.filter(status=_parse_choice(status_filter, EnquiryStatus, "Status"))

    if subject:
        query = query.filter(subject=_parse_choice(subject, EnquirySubject, "Subject"))

    return await _paginated_response(query, page_params)


@router.get("/stats", response_model=EnquiryStats)
async def enquiry_stats(
    admin_user: User = Depends(get_current_admin_user),
) -> Any:
    """
    Enquiry counts and the most recent submissions (admin only)
    """
    total = await Enquiry.all().count()
    pending = await Enquiry.filter(status=EnquiryStatus.PENDING).count()
    resolved = await Enquiry.filter(status=EnquiryStatus.RESOLVED).count()

    recent = await Enquiry.all().order_by("-created_at").limit(RECENT_ENQUIRIES_LIMIT)

    return {
        "total_enquiries": total,
        "pending_enquiries": pending,
        "resolved_enquiries": resolved,
        "enquiry_by_subject": await _count_by("subject"),
        "enquiry_by_status": await _count_by("status"),
        "recent_enquiries": await _serialize_many(recent, schema=RecentEnquiry),
    }


async def _count_by(field: str) -> List[GroupCount]:
    rows = await (
        Enquiry.annotate(total=Count("id"))
        .group_by(field)
        .values(field, "total")
    )
    counts = [
        GroupCount(key=getattr(row[field], "value", row[field]), count=row["total"])
        for row in rows
    ]
    return sorted(counts, key=lambda group: group.key)


@router.get("/{enquiry_id}", response_model=EnquiryEnvelope)
async def get_enquiry(
    enquiry_id: UUID,
    admin_user: User = Depends(get_current_admin_user),
) -> Any:
    """
    Get enquiry by ID (admin only)
    """
    enquiry = await _get_enquiry_or_404(enquiry_id)
    return {"enquiry": await _serialize_one(enquiry)}


@router.put("/{enquiry_id}/status", response_model=EnquiryMessageResponse)
async def update_enquiry_status(
    enquiry_id: UUID,
    update_in: EnquiryStatusUpdate,
    admin_user: User = Depends(get_current_admin_user),
) -> Any:
    """
    Set the status and/or assignee of an enquiry (admin only)

    Any status may follow any other; only the provided fields change.
    """
    enquiry = await _get_enquiry_or_404(enquiry_id)

    if update_in.status:
        enquiry.status = _parse_choice(update_in.status, EnquiryStatus, "Status")

    if update_in.assigned_to:
        try:
            assignee_id = UUID(update_in.assigned_to.strip())
        except ValueError:
            raise ValidationError("Assigned user not found")
        assignee = await User.get_or_none(id=assignee_id)
        if assignee is None:
            raise ValidationError("Assigned user not found")
        enquiry.assigned_to = assignee

    await enquiry.save()

    logger.info(
        "Enquiry %s updated by %s: status=%s assignee=%s",
        enquiry.id, admin_user.username, enquiry.status.value, enquiry.assigned_to_id,
    )
    return {
        "message": "Enquiry status updated successfully",
        "enquiry": await _serialize_one(enquiry),
    }


@router.delete("/{enquiry_id}", response_model=MessageResponse)
async def delete_enquiry(
    enquiry_id: UUID,
    admin_user: User = Depends(get_current_admin_user),
) -> Any:
    """
    Delete enquiry (admin only)
    """
    enquiry = await _get_enquiry_or_404(enquiry_id)
    await enquiry.delete()

    logger.info("Enquiry %s deleted by %s", enquiry_id, admin_user.username)
    return {"message": "Enquiry deleted successfully"}
