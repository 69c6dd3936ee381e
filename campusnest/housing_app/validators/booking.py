from django.core.exceptions import ValidationError

from housing_app.models import TIME_FRAME_DAILY

MAX_GUESTS = 10


def validate_stay_dates(time_frame, check_in, check_out):
    """
    Daily stays need a check-out strictly after check-in; monthly stays
    ignore check-out entirely.
    """
    errors = {}
    if check_in is None:
        errors["check_in_date"] = "Check-in date is required"
    if time_frame == TIME_FRAME_DAILY:
        if check_out is None:
            errors["check_out_date"] = "Check-out date is required for daily bookings"
        elif check_in is not None and check_out <= check_in:
            errors["check_out_date"] = "Check-out date must be after check-in date"
    if errors:
        raise ValidationError(errors)


def validate_guest_count(number_of_guests, room_capacity=None):
    if number_of_guests is None or number_of_guests < 1:
        raise ValidationError("At least 1 guest is required")
    if number_of_guests > MAX_GUESTS:
        raise ValidationError(f"Maximum {MAX_GUESTS} guests allowed")
    if room_capacity is not None and number_of_guests > room_capacity:
        raise ValidationError(f"This room accommodates at most {room_capacity} guest(s)")
