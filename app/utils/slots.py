"""
Seat plans, slot-overlap rules and seat pools.

A booking is described by a *plan*: one of the closed variants below. Each
plan knows what it is stored as (``category``, ``duration_type``, ``slot``),
which seat pool it may use, and whether it holds a seat for the full day.

Shift windows, for reference:

    morning    6-hour   first half of the day
    afternoon  6-hour   second half of the day
    evening    6-hour   18:00 - 24:00
    day        12-hour  09:00 - 21:00
    night      12-hour  21:00 - 09:00
    full       24-hour  whole day

Only the pairs listed in ``_OVERLAPPING`` (plus identical slots) collide.
"""

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar, FrozenSet, Optional, Union

from app.core.errors import BookingValidationError


class Slot(str, enum.Enum):
    morning = "morning"
    afternoon = "afternoon"
    evening = "evening"
    night = "night"
    day = "day"
    full = "full"


class DurationType(str, enum.Enum):
    six_hours = "6hr"
    twelve_hours = "12hr"
    full_day = "24hr"
    membership = "membership"


class Category(str, enum.Enum):
    fixed = "fixed"
    floating = "floating"
    limited = "limited"


# Statuses that hold a seat
ACTIVE_STATUSES = ("confirmed", "pending")

FULL_DAY_POOL = range(1, 14)
HOURLY_POOL = range(14, 51)

SHIFT_SLOTS = frozenset({Slot.morning, Slot.afternoon, Slot.evening, Slot.night, Slot.day})

_OVERLAPPING = frozenset({
    frozenset({Slot.day, Slot.morning}),
    frozenset({Slot.day, Slot.afternoon}),
    frozenset({Slot.night, Slot.evening}),
})


def slots_overlap(a: Slot, b: Slot) -> bool:
    """Symmetric slot collision test. ``full`` collides with everything."""
    a, b = Slot(a), Slot(b)
    if Slot.full in (a, b):
        return True
    return a == b or frozenset({a, b}) in _OVERLAPPING


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open overlap of [a_start, a_end) and [b_start, b_end)."""
    return a_start < b_end and b_start < a_end


def pool_of(seat_number: int) -> range:
    if seat_number in FULL_DAY_POOL:
        return FULL_DAY_POOL
    if seat_number in HOURLY_POOL:
        return HOURLY_POOL
    raise BookingValidationError(f"Seat number {seat_number} is outside 1-50")


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Plan:
    category: ClassVar[Category]
    duration_type: ClassVar[DurationType]
    # Full-day plans exclude every other booking on the seat
    exclusive: ClassVar[bool] = False
    # Seat pool the plan books from; None when no seat is assigned
    pool: ClassVar[Optional[range]] = None

    @property
    def slot(self) -> Optional[Slot]:
        return None

    @property
    def rate_key(self) -> str:
        if self.duration_type is DurationType.membership:
            return self.category.value
        return self.duration_type.value


@dataclass(frozen=True)
class _ShiftPlan(Plan):
    shift: Slot
    shifts: ClassVar[FrozenSet[Slot]] = frozenset()

    def __post_init__(self):
        try:
            shift = Slot(self.shift)
        except ValueError:
            shift = None
        if shift not in self.shifts:
            allowed = ", ".join(sorted(s.value for s in self.shifts))
            raise BookingValidationError(
                f"Slot '{self.shift}' is not valid for {self.duration_type.value} "
                f"{self.category.value} bookings (choose one of: {allowed})"
            )
        object.__setattr__(self, "shift", shift)

    @property
    def slot(self) -> Slot:
        return self.shift


@dataclass(frozen=True)
class Fixed(Plan):
    category = Category.fixed
    duration_type = DurationType.membership
    exclusive = True
    pool = FULL_DAY_POOL


@dataclass(frozen=True)
class Floating(Plan):
    category = Category.floating
    duration_type = DurationType.membership
    exclusive = True


@dataclass(frozen=True)
class Limited(_ShiftPlan):
    category = Category.limited
    duration_type = DurationType.membership
    shifts = frozenset({Slot.morning, Slot.evening})


@dataclass(frozen=True)
class Hourly6(_ShiftPlan):
    category = Category.limited
    duration_type = DurationType.six_hours
    shifts = frozenset({Slot.morning, Slot.afternoon, Slot.evening})
    pool = HOURLY_POOL


@dataclass(frozen=True)
class Hourly12(_ShiftPlan):
    category = Category.limited
    duration_type = DurationType.twelve_hours
    shifts = frozenset({Slot.day, Slot.night})
    pool = HOURLY_POOL


@dataclass(frozen=True)
class Hourly24(Plan):
    category = Category.fixed
    duration_type = DurationType.full_day
    exclusive = True
    pool = FULL_DAY_POOL

    @property
    def slot(self) -> Slot:
        return Slot.full


SeatPlan = Union[Fixed, Floating, Limited, Hourly6, Hourly12, Hourly24]

_SHIFT_PLANS = {
    "6hr": Hourly6,
    "12hr": Hourly12,
    "limited": Limited,
}
_WHOLE_DAY_PLANS = {
    "24hr": Hourly24,
    "fixed": Fixed,
    "floating": Floating,
}


def plan_for(kind: Union[str, DurationType, Category], slot: Optional[str] = None) -> SeatPlan:
    """
    Build the plan for a duration type (``6hr``/``12hr``/``24hr``) or a
    membership category (``fixed``/``floating``/``limited``).

    Shift plans require a slot. Whole-day plans ignore whatever slot was sent.
    """
    key = kind.value if isinstance(kind, enum.Enum) else str(kind)
    if key in _WHOLE_DAY_PLANS:
        return _WHOLE_DAY_PLANS[key]()
    if key in _SHIFT_PLANS:
        if not slot:
            raise BookingValidationError(f"Please select a slot for {key} bookings")
        return _SHIFT_PLANS[key](slot)
    raise BookingValidationError(f"Unknown booking category '{key}'")


def holds_full_day(duration_type: Optional[str], slot: Optional[str]) -> bool:
    """
    Whether a stored booking blocks its seat for the whole day.

    ``24hr`` bookings, ``full`` slots and seat memberships stored without a
    slot (fixed) all do.
    """
    return duration_type == DurationType.full_day.value or slot is None or slot == Slot.full.value


def bookings_conflict(requested: Plan, duration_type: Optional[str], slot: Optional[str]) -> bool:
    """Does a stored booking (``duration_type``, ``slot``) collide with the requested plan?"""
    if requested.exclusive or holds_full_day(duration_type, slot):
        return True
    return slots_overlap(requested.slot, Slot(slot))
