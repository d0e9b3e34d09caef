from fastapi import APIRouter
from hostellink.api.v1.routes.auth import router as auth_router
from hostellink.api.v1.routes.hostels import router as hostels_router
from hostellink.api.v1.routes.bookings import router as bookings_router
from hostellink.api.v1.routes.landlord import router as landlord_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth_router)
api_router.include_router(hostels_router)
api_router.include_router(bookings_router)
api_router.include_router(landlord_router)
