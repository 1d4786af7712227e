from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from resort_api.models.enquiry import EnquiryStatus, EnquirySubject
from resort_api.schemas.base import CamelModel


class EnquiryCreate(CamelModel):
    """Public enquiry form; blank and missing fields are rejected by the handler"""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    date_of_plan: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None


class EnquiryStatusUpdate(CamelModel):
    status: Optional[str] = None
    assigned_to: Optional[str] = None


class AssigneeSummary(CamelModel):
    id: UUID
    name: str
    email: str


class AssigneeName(CamelModel):
    id: UUID
    name: str


class EnquiryResponse(CamelModel):
    id: UUID
    name: str
    email: str
    phone: str
    date_of_plan: datetime
    subject: EnquirySubject
    message: str
    status: EnquiryStatus
    assigned_to: Optional[AssigneeSummary] = None
    created_at: datetime
    updated_at: datetime


class RecentEnquiry(EnquiryResponse):
    assigned_to: Optional[AssigneeName] = None


class EnquiryEnvelope(CamelModel):
    enquiry: EnquiryResponse


class EnquiryMessageResponse(CamelModel):
    message: str
    enquiry: EnquiryResponse


class EnquiryListResponse(CamelModel):
    enquiries: List[EnquiryResponse]
    total_pages: int
    current_page: int
    total: int


class GroupCount(CamelModel):
    key: str = Field(alias="_id")
    count: int


class EnquiryStats(CamelModel):
    total_enquiries: int
    pending_enquiries: int
    resolved_enquiries: int
    enquiry_by_subject: List[GroupCount]
    enquiry_by_status: List[GroupCount]
    recent_enquiries: List[RecentEnquiry]
