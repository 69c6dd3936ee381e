# campusnest/conftest.py
import os
import uuid
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from housing_app.models import Location, Merchant, Profile, Property, Room, ROLE_MERCHANT, ROLE_STUDENT
from housing_app.services.client import BackendClient
from housing_app.services.realtime import hub


@pytest.fixture(autouse=True)
def clear_cache_between_tests(settings):
    # throttle counters must not leak across tests
    cache.clear()
    yield
    cache.clear()


@pytest.fixture(autouse=True)
def unique_cache_location_for_session(settings):
    caches = settings.CACHES.copy()
    default = caches.get("default", {}).copy()
    default["LOCATION"] = f"pytest-cache-{os.getpid()}-{uuid.uuid4()}"
    caches["default"] = default
    settings.CACHES = caches


@pytest.fixture(autouse=True)
def isolated_media(settings, tmp_path):
    """Each test gets its own MEDIA_ROOT, so storage buckets start empty."""
    settings.MEDIA_ROOT = str(tmp_path / "media")


@pytest.fixture(autouse=True)
def release_realtime_channels():
    yield
    hub.remove_all_channels()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def user_factory(db):
    """
    Usage:
      u = user_factory()
      m = user_factory(email="owner@example.com", role="merchant", confirmed=False)
    """
    User = get_user_model()

    def make_user(
        *,
        email=None,
        password="pass12345",
        full_name="Test User",
        role=ROLE_STUDENT,
        confirmed=True,
        **extra,
    ):
        if email is None:
            email = f"user-{uuid.uuid4().hex[:8]}@example.com"
        u = User.objects.create_user(
            username=email,
            email=email,
            password=password,
            first_name=full_name.split(" ")[0],
            **extra,
        )
        Profile.objects.create(
            user=u,
            email=email,
            full_name=full_name,
            role=role,
            email_confirmed=confirmed,
        )
        return u

    return make_user


@pytest.fixture
def user(user_factory):
    return user_factory(email="alice@example.com", full_name="Alice Student")


@pytest.fixture
def merchant_user(user_factory):
    return user_factory(email="owner@example.com", full_name="Omar Owner", role=ROLE_MERCHANT)


@pytest.fixture
def auth_client(api_client, user):
    """APIClient authenticated as `user` without going through login."""
    api_client.force_authenticate(user=user)
    return api_client


@pytest.fixture
def merchant(merchant_user):
    return Merchant.objects.create(
        user=merchant_user,
        business_name="Nest Stays",
        phone="9876543210",
        email=merchant_user.email,
    )


@pytest.fixture
def property_factory(db, merchant):
    """
    Usage:
      prop = property_factory()
      prop2 = property_factory(name="Girls PG", gender="girls", monthly_price="6000.00")
    """
    def make_property(
        *,
        name="Sunrise PG",
        address="12 College Road, Pune",
        location_name="Pune",
        monthly_price="8000.00",
        daily_price="500.00",
        gender="common",
        is_verified=True,
        **overrides,
    ):
        location, _ = Location.objects.get_or_create(name=location_name)
        return Property.objects.create(
            merchant=overrides.pop("merchant", merchant),
            name=name,
            address=address,
            location=location,
            monthly_price=Decimal(monthly_price),
            daily_price=Decimal(daily_price) if daily_price is not None else None,
            gender=gender,
            is_verified=is_verified,
            **overrides,
        )

    return make_property


@pytest.fixture
def room_factory(db):
    def make_room(
        prop,
        *,
        room_number="101",
        capacity=2,
        monthly_price="7000.00",
        daily_price="400.00",
        security_deposit="2000.00",
        **overrides,
    ):
        return Room.objects.create(
            property=prop,
            room_number=room_number,
            capacity=capacity,
            monthly_price=Decimal(monthly_price),
            daily_price=Decimal(daily_price) if daily_price is not None else None,
            security_deposit=Decimal(security_deposit) if security_deposit is not None else None,
            **overrides,
        )

    return make_room


@pytest.fixture
def backend(db):
    """A fresh collaborator with its own auth state; channels go to the shared hub."""
    client = BackendClient()
    yield client
    client.remove_all_channels()


@pytest.fixture
def signed_in_backend(backend, user):
    backend.auth.sign_in_with_password(user.email, "pass12345")
    return backend
