# API routes package
from fastapi import APIRouter

from resort_api.core.config import settings

from .users import router as users_router
from .enquiries import router as enquiries_router

# Create API router
router = APIRouter(prefix=settings.API_PREFIX)

# Include all routers
router.include_router(users_router)
router.include_router(enquiries_router)
