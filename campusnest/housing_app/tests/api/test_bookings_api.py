from decimal import Decimal

import pytest
from django.urls import reverse

from housing_app.models import Booking
from notifications.models import OutboundNotification

pytestmark = pytest.mark.django_db


@pytest.fixture
def listing(property_factory, room_factory):
    prop = property_factory()
    room = room_factory(prop)
    return prop, room


def daily_draft(prop, room, **overrides):
    data = {
        "property_id": prop.pk,
        "room_id": room.pk,
        "time_frame": "daily",
        "check_in_date": "2030-03-10",
        "check_out_date": "2030-03-13",
        "number_of_guests": 2,
    }
    data.update(overrides)
    return data


# --------------------
# Quote
# --------------------
def test_quote_daily_room(api_client, listing):
    prop, room = listing
    r = api_client.post(reverse("api:booking-quote"), daily_draft(prop, room))
    assert r.status_code == 200
    assert r.data["unit_price"] == "400.00"
    assert r.data["units"] == 3
    assert r.data["total_amount"] == "1200.00"
    assert r.data["security_deposit"] == "2000.00"
    assert r.data["total_payable"] == "3200.00"


def test_quote_monthly_without_rooms(api_client, property_factory):
    prop = property_factory()
    r = api_client.post(reverse("api:booking-quote"), {
        "property_id": prop.pk,
        "time_frame": "monthly",
        "check_in_date": "2030-03-10",
        "number_of_guests": 1,
    })
    assert r.status_code == 200
    assert (r.data["unit_price"], r.data["units"], r.data["total_payable"]) == ("8000.00", 1, "8000.00")


def test_quote_daily_without_daily_price(api_client, property_factory):
    prop = property_factory(daily_price=None)
    r = api_client.post(reverse("api:booking-quote"), {
        "property_id": prop.pk,
        "time_frame": "daily",
        "check_in_date": "2030-03-10",
        "check_out_date": "2030-03-11",
        "number_of_guests": 1,
    })
    assert r.status_code == 400
    assert "time_frame" in r.data["field_errors"]


# --------------------
# Create
# --------------------
def test_create_requires_auth(api_client, listing):
    prop, room = listing
    r = api_client.post(reverse("api:booking-list"), daily_draft(prop, room))
    assert r.status_code == 401
    assert not Booking.objects.exists()


def test_create_daily_booking(auth_client, user, listing):
    prop, room = listing
    r = auth_client.post(reverse("api:booking-list"), daily_draft(prop, room, special_requests="Late arrival"))

    assert r.status_code == 201
    assert r.data["status"] == "pending"
    assert r.data["payment_status"] == "pending"
    assert r.data["total_amount"] == "1200.00"
    assert r.data["security_deposit"] == "2000.00"
    assert r.data["check_out_date"] == "2030-03-13"

    booking = Booking.objects.get(pk=r.data["id"])
    assert booking.user == user
    assert booking.total_amount == Decimal("1200.00")
    assert booking.special_requests == "Late arrival"
    assert OutboundNotification.objects.filter(user=user, template_key="booking.submitted").exists()


def test_create_monthly_drops_check_out(auth_client, listing):
    prop, room = listing
    r = auth_client.post(
        reverse("api:booking-list"),
        daily_draft(prop, room, time_frame="monthly", check_out_date="2030-06-01"),
    )
    assert r.status_code == 201
    assert r.data["check_out_date"] is None
    assert r.data["total_amount"] == "7000.00"


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"check_in_date": None}, "check_in_date"),
        ({"check_out_date": "2030-03-01"}, "check_out_date"),
        ({"check_out_date": "2030-03-10"}, "check_out_date"),
        ({"number_of_guests": 0}, "number_of_guests"),
        ({"number_of_guests": 11}, "number_of_guests"),
        ({"number_of_guests": 3}, "number_of_guests"),
        ({"room_id": None}, "room_id"),
        ({"check_in_time": "25:00"}, "check_in_time"),
    ],
)
def test_create_rejects_invalid_drafts(auth_client, listing, overrides, field):
    prop, room = listing
    data = {k: v for k, v in daily_draft(prop, room, **overrides).items() if v is not None}
    r = auth_client.post(reverse("api:booking-list"), data)

    assert r.status_code == 400
    assert r.data["code"] == "validation_error"
    assert field in r.data["field_errors"]
    assert not Booking.objects.exists()


def test_create_for_unverified_property(auth_client, property_factory):
    prop = property_factory(is_verified=False)
    r = auth_client.post(reverse("api:booking-list"), {
        "property_id": prop.pk,
        "time_frame": "monthly",
        "check_in_date": "2030-03-10",
        "number_of_guests": 1,
    })
    assert r.status_code == 400
    assert r.data["detail"] == "Property not found"


def test_idempotency_key_replays_first_booking(auth_client, listing):
    prop, room = listing
    url = reverse("api:booking-list")

    first = auth_client.post(url, daily_draft(prop, room), HTTP_IDEMPOTENCY_KEY="draft-1")
    again = auth_client.post(url, daily_draft(prop, room), HTTP_IDEMPOTENCY_KEY="draft-1")
    other = auth_client.post(url, daily_draft(prop, room), HTTP_IDEMPOTENCY_KEY="draft-2")

    assert (first.status_code, again.status_code, other.status_code) == (201, 200, 201)
    assert again.data["id"] == first.data["id"]
    assert other.data["id"] != first.data["id"]
    assert Booking.objects.count() == 2


def test_idempotency_key_too_long(auth_client, listing):
    prop, room = listing
    r = auth_client.post(reverse("api:booking-list"), daily_draft(prop, room), HTTP_IDEMPOTENCY_KEY="k" * 65)
    assert r.status_code == 400
    assert not Booking.objects.exists()


# --------------------
# Read
# --------------------
def test_list_only_my_bookings(auth_client, user_factory, listing):
    prop, room = listing
    url = reverse("api:booking-list")
    auth_client.post(url, daily_draft(prop, room))
    auth_client.post(url, daily_draft(prop, room, time_frame="monthly"))

    stranger = user_factory()
    Booking.objects.create(
        property=prop, user=stranger, check_in_date="2030-01-01", time_frame="monthly",
        price_per_unit="8000", total_amount="8000",
    )

    r = auth_client.get(url)
    assert r.status_code == 200
    assert r.data["count"] == 2

    r = auth_client.get(url, {"time_frame": "monthly"})
    assert [b["time_frame"] for b in r.data["results"]] == ["monthly"]


def test_detail_is_owner_only(auth_client, api_client, user_factory, listing):
    prop, room = listing
    created = auth_client.post(reverse("api:booking-list"), daily_draft(prop, room)).data
    url = reverse("api:booking-detail", args=[created["id"]])

    r = auth_client.get(url)
    assert r.status_code == 200
    assert r.data["property_name"] == "Sunrise PG"
    assert r.data["room_number"] == "101"

    api_client.force_authenticate(user=user_factory())
    assert api_client.get(url).status_code == 404

    api_client.force_authenticate(user=user_factory(is_staff=True))
    assert api_client.get(url).status_code == 200


def test_only_students_can_book(api_client, merchant_user, listing):
    prop, room = listing
    api_client.force_authenticate(user=merchant_user)
    r = api_client.post(reverse("api:booking-list"), daily_draft(prop, room))
    assert r.status_code == 403
    assert r.data["code"] == "forbidden"
    assert not Booking.objects.exists()
