from .images import validate_avatar_image
from .booking import MAX_GUESTS, validate_guest_count, validate_stay_dates
