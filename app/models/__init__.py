from app.models.user import User
from app.models.seat import Seat
from app.models.booking import Booking
from app.models.waitlist import WaitlistEntry
from app.models.transaction import Transaction
