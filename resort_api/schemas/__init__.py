# Export all schemas for easier imports
from .base import CamelModel, MessageResponse
from .user import (
    Address, UserRegister, UserLogin, UserProfileUpdate, UserResponse,
    UserEnvelope, UserMessageResponse, AuthResponse, UserListResponse
)
from .enquiry import (
    EnquiryCreate, EnquiryStatusUpdate, EnquiryResponse, EnquiryEnvelope,
    EnquiryMessageResponse, EnquiryListResponse, EnquiryStats, GroupCount,
    AssigneeSummary, AssigneeName, RecentEnquiry
)
