from typing import List, Generic, TypeVar
from decimal import Decimal
from pydantic import BaseModel

T = TypeVar("T")


# Paginated response wrapper: used by all list endpoints
class PaginatedResponse(BaseModel, Generic[T]):
    data: List[T]
    total: int
    page: int
    limit: int
    total_pages: int


# Error body for every BookingError (validation_error, store_error, seat_unavailable, not_found)
class ErrorResponse(BaseModel):
    error: str
    message: str


# Admin dashboard: one read model, computed per request
class DashboardStats(BaseModel):
    month_revenue: Decimal
    booked_seats: int
    fixed_members: int
    floating_members: int
    limited_members: int
    pending_approvals: int
    waitlist_entries: int
    total_users: int
