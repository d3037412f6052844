from app.schemas.common import PaginatedResponse, ErrorResponse, DashboardStats
from app.schemas.user import User, UserCreate, AdminCreate, UserUpdate, UserSummary, Token
from app.schemas.seat import (
    Seat, SeatCreate, SeatBulkCreate, SeatBulkCreateResponse,
    SeatAvailabilityStatus, SeatAvailabilityResponse, FixedSeatAvailability,
    SeatLayoutItem, SeatLayoutResponse,
)
from app.schemas.booking import (
    Booking, BookingCreate, MembershipCreate, BookingOutcome, WaitlistEntry,
    CostQuote, AdminBooking, BookingUpdate, PaymentCreate, ReleaseRequest,
    MoveRequest, MoveResponse, Transaction, MemberOverview,
)
