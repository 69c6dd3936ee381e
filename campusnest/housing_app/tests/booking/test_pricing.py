from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from housing_app.services.pricing import count_units, derive_price, resolve_unit_price


def make_room(monthly="8000", daily="500", capacity=2, deposit=None):
    return SimpleNamespace(
        id=1,
        capacity=capacity,
        monthly_price=Decimal(monthly),
        daily_price=Decimal(daily) if daily is not None else None,
        security_deposit=Decimal(deposit) if deposit is not None else None,
    )


@pytest.mark.parametrize("nights", [1, 2, 3, 7, 30, 45])
def test_daily_total_is_unit_price_times_nights(nights):
    check_in = date(2024, 6, 1)
    price = derive_price(
        "daily",
        base_price=None,
        room=make_room(daily="499.99"),
        check_in=check_in,
        check_out=check_in + timedelta(days=nights),
    )
    assert price.units == nights
    assert price.total_amount == Decimal("499.99") * nights


def test_daily_scenario_three_nights_in_two_bed_room():
    price = derive_price(
        "daily",
        base_price=Decimal("9000"),
        room=make_room(monthly="8000", daily="500", capacity=2),
        check_in=date(2024, 6, 1),
        check_out=date(2024, 6, 4),
    )
    assert price.unit_price == Decimal("500")
    assert price.units == 3
    assert price.total_amount == Decimal("1500")


@pytest.mark.parametrize(
    "check_in,check_out",
    [
        (None, None),
        (date(2024, 1, 1), None),
        (date(2024, 1, 1), date(2024, 3, 15)),
        (date(2025, 12, 31), date(2026, 1, 1)),
    ],
)
def test_monthly_total_ignores_dates(check_in, check_out):
    price = derive_price(
        "monthly",
        base_price=Decimal("9000"),
        check_in=check_in,
        check_out=check_out,
    )
    assert price.units == 1
    assert price.total_amount == Decimal("9000")


def test_monthly_uses_room_monthly_price_when_room_selected():
    price = derive_price("monthly", Decimal("9000"), room=make_room(monthly="7000"), check_in=date(2024, 6, 1))
    assert price.total_amount == Decimal("7000")


def test_missing_check_out_counts_one_unit():
    assert count_units(date(2024, 6, 1), None) == 1
    assert count_units(None, None) == 1


def test_same_day_counts_one_unit():
    assert count_units(date(2024, 6, 1), date(2024, 6, 1)) == 1


def test_inverted_range_uses_absolute_difference():
    assert count_units(date(2024, 6, 4), date(2024, 6, 1)) == 3


def test_daily_room_without_daily_price_has_no_total():
    price = derive_price(
        "daily", Decimal("500"), room=make_room(daily=None), check_in=date(2024, 6, 1), check_out=date(2024, 6, 2)
    )
    assert price.unit_price is None
    assert price.total_amount is None
    assert price.total_payable is None


def test_security_deposit_is_only_in_total_payable():
    price = derive_price(
        "daily",
        None,
        room=make_room(daily="500", deposit="2000"),
        check_in=date(2024, 6, 1),
        check_out=date(2024, 6, 3),
    )
    assert price.total_amount == Decimal("1000")
    assert price.security_deposit == Decimal("2000")
    assert price.total_payable == Decimal("3000")


def test_base_price_used_without_room():
    assert resolve_unit_price("daily", "650", None) == Decimal("650")


def test_unknown_time_frame_rejected():
    with pytest.raises(ValueError):
        derive_price("weekly", Decimal("100"))
