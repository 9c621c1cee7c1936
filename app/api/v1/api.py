from fastapi import APIRouter

from app.api.v1.endpoints import admin, availability, booking, reviews, tutors

api_router = APIRouter()

# Include endpoint routers
api_router.include_router(tutors.router, prefix="/tutors", tags=["tutors"])
api_router.include_router(availability.router, prefix="/availability", tags=["availability"])
api_router.include_router(booking.router, prefix="/bookings", tags=["bookings"])
api_router.include_router(reviews.router, prefix="/reviews", tags=["reviews"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
