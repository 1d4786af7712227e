# Database models
from .users import User, UserRole
from .enquiry import Enquiry, EnquiryStatus, EnquirySubject

# Modules registered with Tortoise under the "models" app label
MODEL_MODULES = ["resort_api.models.users", "resort_api.models.enquiry"]
