from fastapi import APIRouter

# Auth
from app.api.v1.public.auth import router as auth_router

# Public: seat picker, layout, fixed seat check
from app.api.v1.public.seats import router as seats_router

# Public: bookings & memberships
from app.api.v1.public.bookings import router as bookings_router
from app.api.v1.public.memberships import router as memberships_router

# Public: user profile
from app.api.v1.public.me import router as me_router

# Admin
from app.api.v1.admin.bookings import router as admin_bookings_router, waitlist_router
from app.api.v1.admin.seats import router as admin_seats_router
from app.api.v1.admin.dashboard import router as dashboard_router
from app.api.v1.admin.users import router as admin_users_router

api_router = APIRouter()

# --- Auth ---
api_router.include_router(auth_router)

# --- Public: seats ---
api_router.include_router(seats_router)

# --- Public: bookings & memberships ---
api_router.include_router(bookings_router)
api_router.include_router(memberships_router)

# --- Public: profile ---
api_router.include_router(me_router)

# --- Admin ---
api_router.include_router(admin_bookings_router)
api_router.include_router(waitlist_router)
api_router.include_router(admin_seats_router)
api_router.include_router(dashboard_router)
api_router.include_router(admin_users_router)
