"""
BookingForm: turns room/date/guest choices into a priced draft and submits
it as a single `bookings` row, at most once.

    form = BookingForm(client, session, property_id=7, time_frame="daily",
                       base_price=Decimal("500"), rooms=rooms)
    form.set_check_in_date(date(2024, 6, 1))
    form.set_check_out_date(date(2024, 6, 4))
    form.select_room(rooms[0].id)
    form.submit()   # -> booking id, or None when blocked/failed
"""

import logging
import uuid
from datetime import date
from decimal import Decimal

from django.utils import timezone

from housing_app.api.serializers import BookingDraftSerializer
from housing_app.models import Booking, TIME_FRAME_DAILY, TIME_FRAME_MONTHLY
from housing_app.services.errors import ServiceError
from housing_app.services.pricing import PriceBreakdown, derive_price

from .access import LOGIN_ROUTE
from .ui import Navigator, Toaster

logger = logging.getLogger(__name__)

DEFAULT_CHECK_IN_TIME = "12:00"
DEFAULT_CHECK_OUT_TIME = "10:00"


def confirmation_route(booking_id) -> str:
    return f"/bookings/{booking_id}/confirmation"


def build_booking_payload(
    *,
    property_id,
    user_id,
    time_frame: str,
    room_id,
    check_in_date: date,
    check_out_date: date | None,
    check_in_time: str | None,
    check_out_time: str | None,
    price: PriceBreakdown,
    number_of_guests: int,
    special_requests: str | None,
    idempotency_key: str | None,
) -> dict:
    """Row for the `bookings` table. The security deposit is never part of it."""
    return {
        "property_id": property_id,
        "room_id": room_id,
        "user_id": user_id,
        "check_in_date": check_in_date.isoformat(),
        "check_out_date": (
            check_out_date.isoformat() if time_frame == TIME_FRAME_DAILY and check_out_date else None
        ),
        "check_in_time": check_in_time or DEFAULT_CHECK_IN_TIME,
        "check_out_time": check_out_time or DEFAULT_CHECK_OUT_TIME,
        "time_frame": time_frame,
        "price_per_unit": price.unit_price,
        "total_amount": price.total_amount,
        "status": Booking.STATUS_PENDING,
        "payment_status": Booking.PAYMENT_PENDING,
        "number_of_guests": number_of_guests,
        "special_requests": special_requests or "",
        "idempotency_key": idempotency_key,
    }


class BookingForm:
    def __init__(
        self,
        client,
        session,
        *,
        property_id,
        time_frame: str,
        base_price,
        rooms=(),
        room_id=None,
        on_success=None,
        toaster: Toaster | None = None,
        navigator: Navigator | None = None,
    ):
        if time_frame not in (TIME_FRAME_DAILY, TIME_FRAME_MONTHLY):
            raise ValueError(f"Unknown time frame: {time_frame!r}")
        self.client = client
        self.session = session
        self.property_id = property_id
        self.time_frame = time_frame
        self.base_price = None if base_price is None else Decimal(str(base_price))
        self.rooms = list(rooms)
        self.on_success = on_success
        self.toaster = toaster or getattr(session, "toaster", None) or Toaster()
        self.navigator = navigator or getattr(session, "navigator", None) or Navigator()

        self.check_in_date: date | None = None
        self.check_out_date: date | None = None
        self.check_in_time = DEFAULT_CHECK_IN_TIME
        self.check_out_time = DEFAULT_CHECK_OUT_TIME
        self.number_of_guests = 1
        self.special_requests = ""
        self.selected_room = None

        self.idempotency_key = uuid.uuid4().hex
        self.is_submitting = False
        self.booking_id = None
        self.errors = {}
        self.price = derive_price(time_frame, self.base_price)

        if room_id is not None:
            # silently ignored when the id is not among the available rooms
            self.selected_room = self._find_room(room_id)
        self.recompute()

    # ---- inputs ----
    def _find_room(self, room_id):
        return next((r for r in self.rooms if r.id == room_id), None)

    def set_check_in_date(self, value: date | None):
        self.check_in_date = value
        self.recompute()

    def set_check_out_date(self, value: date | None):
        self.check_out_date = value
        self.recompute()

    def select_room(self, room_id):
        self.selected_room = self._find_room(room_id) if room_id is not None else None
        self.recompute()

    def set_number_of_guests(self, value: int):
        self.number_of_guests = value

    def set_special_requests(self, value: str | None):
        self.special_requests = value or ""

    def set_times(self, check_in_time: str | None = None, check_out_time: str | None = None):
        if check_in_time:
            self.check_in_time = check_in_time
        if check_out_time:
            self.check_out_time = check_out_time

    # ---- derivation ----
    def recompute(self) -> PriceBreakdown:
        self.price = derive_price(
            self.time_frame,
            self.base_price,
            room=self.selected_room,
            check_in=self.check_in_date,
            check_out=self.check_out_date,
        )
        return self.price

    @property
    def units(self) -> int:
        return self.price.units

    @property
    def total_amount(self):
        return self.price.total_amount

    @property
    def total_payable(self):
        return self.price.total_payable

    # ---- calendar affordances ----
    def is_check_in_disabled(self, day: date, today: date | None = None) -> bool:
        return day < (today or timezone.localdate())

    def is_check_out_disabled(self, day: date) -> bool:
        return self.check_in_date is not None and day < self.check_in_date

    # ---- validation ----
    def guest_overflow(self) -> bool:
        room = self.selected_room
        return room is not None and self.number_of_guests > room.capacity

    def can_submit(self) -> bool:
        if self.is_submitting or self.booking_id is not None:
            return False
        if self.rooms and self.selected_room is None:
            return False
        if self.price.unit_price is None:
            return False
        return not self.guest_overflow()

    def draft_data(self) -> dict:
        data = {
            "check_in_date": self.check_in_date,
            "check_out_date": self.check_out_date,
            "check_in_time": self.check_in_time,
            "check_out_time": self.check_out_time,
            "number_of_guests": self.number_of_guests,
            "special_requests": self.special_requests,
            "room_id": self.selected_room.id if self.selected_room is not None else None,
        }
        # unset inputs are absent, not null
        return {k: v for k, v in data.items() if v is not None}

    def validate(self) -> bool:
        ser = BookingDraftSerializer(
            data=self.draft_data(),
            context={"time_frame": self.time_frame, "rooms": self.rooms},
        )
        if not ser.is_valid():
            self.errors = {k: [str(m) for m in v] for k, v in ser.errors.items()}
            return False
        if self.price.unit_price is None:
            self.errors = {"room_id": ["No price is set for this booking type"]}
            return False
        self.errors = {}
        return True

    # ---- submission ----
    def submit(self):
        """
        Insert the draft as one `bookings` row. Returns the new booking id,
        or None when the submit was blocked or rejected.
        """
        if self.is_submitting:
            return None
        if self.booking_id is not None:
            return self.booking_id

        user = getattr(self.session, "user", None)
        if user is None:
            self.toaster.error("Authentication required", "Please sign in to book this property")
            self.navigator.navigate(LOGIN_ROUTE, state={"from": self.navigator.current_path})
            return None

        if not self.validate():
            return None

        payload = build_booking_payload(
            property_id=self.property_id,
            user_id=user.id,
            time_frame=self.time_frame,
            room_id=self.selected_room.id if self.selected_room is not None else None,
            check_in_date=self.check_in_date,
            check_out_date=self.check_out_date,
            check_in_time=self.check_in_time,
            check_out_time=self.check_out_time,
            price=self.price,
            number_of_guests=self.number_of_guests,
            special_requests=self.special_requests,
            idempotency_key=self.idempotency_key,
        )

        self.is_submitting = True
        try:
            row = self.client.table("bookings").insert(payload).single()
        except ServiceError as exc:
            logger.warning("booking insert for property %s failed: %s", self.property_id, exc.message)
            self.toaster.error("Booking failed", exc.message or "An error occurred while submitting your booking")
            return None
        finally:
            self.is_submitting = False

        self.booking_id = row["id"]
        self.toaster.toast("Booking submitted", "Your booking request has been successfully submitted!")
        if self.on_success is not None:
            self.on_success(self.booking_id)
        else:
            self.navigator.navigate(confirmation_route(self.booking_id))
        return self.booking_id
