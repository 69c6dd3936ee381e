from unittest.mock import patch

import pytest
from django.urls import reverse

from housing_app.models import Favorite, Review

pytestmark = pytest.mark.django_db


# --------------------
# Listings
# --------------------
def test_list_shows_only_verified(api_client, property_factory):
    property_factory(name="Listed")
    property_factory(name="Pending", is_verified=False)

    r = api_client.get(reverse("api:property-list"))
    assert r.status_code == 200
    assert r.data["count"] == 1
    assert r.data["results"][0]["name"] == "Listed"
    assert r.data["results"][0]["is_favorite"] is False


def test_list_filters(api_client, property_factory):
    property_factory(name="Girls Nest", gender="girls", monthly_price="6000.00", address="Baner, Pune")
    property_factory(name="Boys Den", gender="boys", monthly_price="9000.00", address="Andheri, Mumbai")
    property_factory(name="Shared", gender="common", monthly_price="7000.00", address="Kothrud, Pune")

    def names(**params):
        r = api_client.get(reverse("api:property-list"), params)
        assert r.status_code == 200
        return sorted(p["name"] for p in r.data["results"])

    assert names(gender="girls") == ["Girls Nest"]
    assert names(gender="common") == ["Boys Den", "Girls Nest", "Shared"]
    assert names(location="pune") == ["Girls Nest", "Shared"]
    assert names(max_budget="7000") == ["Girls Nest", "Shared"]
    assert names(search="den") == ["Boys Den"]


def test_list_marks_favorites(auth_client, user, property_factory):
    liked = property_factory(name="Liked")
    property_factory(name="Other")
    Favorite.objects.create(user=user, property=liked)

    r = auth_client.get(reverse("api:property-list"))
    flags = {p["name"]: p["is_favorite"] for p in r.data["results"]}
    assert flags == {"Liked": True, "Other": False}


def test_detail_includes_available_rooms(api_client, property_factory, room_factory):
    prop = property_factory()
    room_factory(prop, room_number="101")
    room_factory(prop, room_number="102", is_available=False)

    r = api_client.get(reverse("api:property-detail", args=[prop.pk]))
    assert r.status_code == 200
    assert r.data["merchant_name"] == "Nest Stays"
    assert [room["room_number"] for room in r.data["rooms"]] == ["101"]


def test_detail_of_unverified_property_is_404(api_client, property_factory):
    prop = property_factory(is_verified=False)
    r = api_client.get(reverse("api:property-detail", args=[prop.pk]))
    assert r.status_code == 404
    assert r.data["ok"] is False
    assert r.data["code"] == "not_found"


def test_rooms_endpoint(api_client, property_factory, room_factory):
    prop = property_factory()
    room_factory(prop, room_number="B2", capacity=3, occupied_beds=1)
    room_factory(prop, room_number="A1")

    r = api_client.get(reverse("api:property-rooms", args=[prop.pk]))
    assert r.status_code == 200
    assert [room["room_number"] for room in r.data] == ["A1", "B2"]
    assert r.data[1]["available_beds"] == 2


# --------------------
# Reviews
# --------------------
def test_review_requires_auth(api_client, property_factory):
    prop = property_factory()
    r = api_client.post(reverse("api:property-reviews", args=[prop.pk]), {"rating": 4})
    assert r.status_code == 401
    assert r.data["code"] == "unauthorised"


def test_create_and_list_reviews(auth_client, property_factory):
    prop = property_factory()
    url = reverse("api:property-reviews", args=[prop.pk])

    r = auth_client.post(url, {"rating": 5, "comment": "Clean and quiet"})
    assert r.status_code == 201
    assert r.data["reviewer_name"] == "Alice Student"

    r = auth_client.get(url)
    assert [rev["comment"] for rev in r.data] == ["Clean and quiet"]

    r = auth_client.get(reverse("api:property-detail", args=[prop.pk]))
    assert r.data["average_rating"] == 5.0


def test_review_rating_out_of_range(auth_client, property_factory):
    prop = property_factory()
    r = auth_client.post(reverse("api:property-reviews", args=[prop.pk]), {"rating": 6})
    assert r.status_code == 400
    assert r.data["code"] == "validation_error"
    assert list(r.data["field_errors"]) == ["rating"]
    assert not Review.objects.exists()


# --------------------
# Favourites
# --------------------
def test_favorite_toggle(auth_client, user, property_factory):
    prop = property_factory()
    url = reverse("api:property-favorite", args=[prop.pk])

    assert auth_client.post(url).status_code == 201
    assert auth_client.post(url).status_code == 200
    assert Favorite.objects.filter(user=user).count() == 1

    r = auth_client.get(reverse("api:favorite-list"))
    assert [f["property"]["id"] for f in r.data] == [prop.pk]
    assert r.data[0]["property"]["is_favorite"] is True

    assert auth_client.delete(url).status_code == 204
    assert not Favorite.objects.exists()


def test_favorites_require_auth(api_client):
    assert api_client.get(reverse("api:favorite-list")).status_code == 401


# --------------------
# Insights & recommendations
# --------------------
def test_insights_endpoint(auth_client, property_factory, settings):
    settings.GOOGLE_AI_API_KEY = "env-key"
    prop = property_factory(name="Scholars Inn")
    reply = {"property_id": prop.pk, "model": "gemini-1.5-flash", "insights": "Great value."}

    with patch("housing_app.api.views.generate_property_insights", return_value=reply) as gen:
        r = auth_client.post(reverse("api:property-insights", args=[prop.pk]))

    assert r.status_code == 200
    assert r.data == reply
    assert gen.call_args.args[1].name == "Scholars Inn"


def test_insights_not_configured_maps_to_503(auth_client, property_factory):
    prop = property_factory()
    r = auth_client.post(reverse("api:property-insights", args=[prop.pk]))
    assert r.status_code == 503
    assert r.data["code"] == "not_configured"
    assert r.data["message"] == "AI insights are not configured"


def test_insights_unknown_property(auth_client):
    r = auth_client.post(reverse("api:property-insights", args=[999]))
    assert r.status_code == 404


def test_recommendations_anonymous(api_client, property_factory):
    property_factory(name="Girls Nest", gender="girls")
    property_factory(name="Boys Den", gender="boys")

    r = api_client.get(reverse("api:recommendations"), {"gender": "girls"})
    assert r.status_code == 200
    assert [(p["name"], p["score"]) for p in r.data] == [("Girls Nest", 0.95)]


def test_recommendations_use_profile_preferences(auth_client, user, property_factory):
    property_factory(name="Cheap", monthly_price="4000.00")
    property_factory(name="Dear", monthly_price="20000.00")
    user.profile.max_budget = "5000.00"
    user.profile.save()

    r = auth_client.get(reverse("api:recommendations"))
    assert [p["name"] for p in r.data] == ["Cheap"]


def test_recommendations_reject_bad_limit(api_client):
    r = api_client.get(reverse("api:recommendations"), {"limit": 0})
    assert r.status_code == 400
    assert "limit" in r.data["field_errors"]


def test_schema_is_served(api_client):
    assert api_client.get(reverse("schema")).status_code == 200
