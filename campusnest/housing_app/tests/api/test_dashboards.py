import pytest
from django.test import Client
from django.urls import reverse
from rest_framework_simplejwt.tokens import RefreshToken

from housing_app.models import Booking, Favorite

pytestmark = pytest.mark.django_db


@pytest.fixture
def web():
    return Client()


def test_anonymous_is_sent_to_login_with_next(web):
    url = reverse("api:dashboard-student")
    r = web.get(url)
    assert r.status_code == 302
    assert r["Location"] == f"/auth/login/?next={url}"


def test_wrong_role_is_sent_to_own_dashboard(web, user):
    web.force_login(user)
    r = web.get(reverse("api:dashboard-merchant"))
    assert r.status_code == 302
    assert r["Location"] == "/dashboard/student/"


def test_student_dashboard(web, user, property_factory):
    prop = property_factory()
    Favorite.objects.create(user=user, property=prop)
    Booking.objects.create(
        property=prop, user=user, check_in_date="2030-01-01", time_frame="monthly",
        price_per_unit="8000", total_amount="8000",
    )
    web.force_login(user)

    r = web.get(reverse("api:dashboard-student"))
    assert r.status_code == 200
    body = r.json()
    assert body["role"] == "student"
    assert body["bookings"] == {"total": 1, "pending": 1, "confirmed": 0, "cancelled": 0}
    assert body["favorites"] == 1
    assert body["recent_bookings"][0]["property_name"] == "Sunrise PG"


def test_merchant_dashboard_counts_own_listings(web, merchant_user, property_factory):
    property_factory(name="Live")
    property_factory(name="Draft", is_verified=False)
    web.force_login(merchant_user)

    body = web.get(reverse("api:dashboard-merchant")).json()
    assert body["business_name"] == "Nest Stays"
    assert body["properties"] == {"total": 2, "verified": 1}
    assert body["revenue"] == "0"


def test_admin_dashboard(web, user_factory, property_factory):
    admin = user_factory(email="root@example.com", role="admin")
    property_factory(is_verified=False)
    web.force_login(admin)

    body = web.get(reverse("api:dashboard-admin")).json()
    assert body["role"] == "admin"
    assert body["properties"]["awaiting_verification"] == 1
    assert body["merchants"] == 1


def test_bearer_token_is_accepted(web, merchant_user):
    token = str(RefreshToken.for_user(merchant_user).access_token)
    r = web.get(reverse("api:dashboard-merchant"), HTTP_AUTHORIZATION=f"Bearer {token}")
    assert r.status_code == 200
    assert r.json()["role"] == "merchant"


def test_bad_bearer_token_falls_back_to_login(web):
    r = web.get(reverse("api:dashboard-admin"), HTTP_AUTHORIZATION="Bearer not-a-jwt")
    assert r.status_code == 302
    assert r["Location"].startswith("/auth/login/")


def test_dashboards_are_get_only(web, user):
    web.force_login(user)
    assert web.post(reverse("api:dashboard-student")).status_code == 405
