from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from housing_app.models import TIME_FRAME_DAILY, TIME_FRAME_MONTHLY


class PriceBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    unit_price: Decimal | None
    units: int
    total_amount: Decimal | None
    security_deposit: Decimal = Decimal("0")
    total_payable: Decimal | None = None


def _dec(value) -> Decimal | None:
    if value is None:
        return None
    return value if isinstance(value, Decimal) else Decimal(str(value))


def resolve_unit_price(time_frame: str, base_price, room=None) -> Decimal | None:
    """
    Room price for the time frame when a room is selected, else the
    property-level base price. A daily booking of a room with no daily
    price has no unit price.
    """
    if room is not None:
        if time_frame == TIME_FRAME_DAILY:
            return _dec(room.daily_price)
        return _dec(room.monthly_price)
    return _dec(base_price)


def count_units(check_in: date | None, check_out: date | None) -> int:
    # absolute difference; ordering is enforced by validation, not here
    if check_in is None or check_out is None:
        return 1
    return max(1, abs((check_out - check_in).days))


def derive_price(time_frame: str, base_price, room=None, check_in=None, check_out=None) -> PriceBreakdown:
    if time_frame not in (TIME_FRAME_DAILY, TIME_FRAME_MONTHLY):
        raise ValueError(f"Unknown time frame: {time_frame!r}")

    unit_price = resolve_unit_price(time_frame, base_price, room)
    units = count_units(check_in, check_out) if time_frame == TIME_FRAME_DAILY else 1
    deposit = _dec(getattr(room, "security_deposit", None)) or Decimal("0")

    if unit_price is None:
        return PriceBreakdown(unit_price=None, units=units, total_amount=None, security_deposit=deposit)

    total = unit_price * units
    return PriceBreakdown(
        unit_price=unit_price,
        units=units,
        total_amount=total,
        security_deposit=deposit,
        total_payable=total + deposit,
    )
