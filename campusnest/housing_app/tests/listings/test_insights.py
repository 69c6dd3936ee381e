from unittest.mock import MagicMock, patch

import pytest
import requests

from housing_app.client.listings import fetch_properties
from housing_app.services.errors import InsightsError
from housing_app.services.insights import (
    MATCH_REASONS,
    build_prompt,
    generate_property_insights,
    recommend_properties,
)

pytestmark = pytest.mark.django_db


def ai_response(status=200, payload=None):
    resp = MagicMock(status_code=status)
    resp.json.return_value = payload if payload is not None else {
        "candidates": [{"content": {"parts": [{"text": "  Good value near campus.  "}]}}]
    }
    return resp


@pytest.fixture
def listed(backend, property_factory, room_factory):
    prop = property_factory(name="Scholars Inn", description="Quiet rooms")
    room_factory(prop)
    [record] = fetch_properties(backend)
    return record


# --------------------
# Recommendations
# --------------------
def test_recommendations_are_scored_in_order(backend, property_factory):
    for name in ("A", "B", "C"):
        property_factory(name=name)

    ranked = recommend_properties(backend)

    assert [r.score for r in ranked] == [0.95, 0.85, 0.75]
    assert [r.match_reason for r in ranked] == list(MATCH_REASONS)


def test_recommendations_respect_preferences_and_limit(backend, property_factory):
    property_factory(name="Girls Budget", gender="girls", monthly_price="5000.00")
    property_factory(name="Girls Premium", gender="girls", monthly_price="15000.00")
    property_factory(name="Boys Budget", gender="boys", monthly_price="5000.00")

    ranked = recommend_properties(backend, {"gender": "girls", "budget": "6000"})
    assert [r.name for r in ranked] == ["Girls Budget"]
    assert ranked[0].score == 0.95

    assert len(recommend_properties(backend, {}, limit=2)) == 2


def test_recommendations_empty_when_nothing_matches(backend, property_factory):
    property_factory(location_name="Pune")
    assert recommend_properties(backend, {"location": "Nagpur"}) == []


# --------------------
# Insights
# --------------------
def test_prompt_mentions_the_property(backend, listed):
    prompt = build_prompt(listed)
    assert "Scholars Inn" in prompt
    assert "Monthly price: 8000.00" in prompt
    assert "Rooms available: 1 of 1" in prompt


def test_insights_need_an_api_key(backend, listed):
    prop = listed
    with patch("housing_app.services.insights.requests.post") as post:
        with pytest.raises(InsightsError) as exc:
            generate_property_insights(backend, prop)
    assert exc.value.code == "not_configured"
    post.assert_not_called()


def test_insights_read_key_from_system_setting(backend, listed):
    backend.rpc("set_setting", {"setting_key": "GOOGLE_AI_API_KEY", "setting_value": "stored-key"})
    prop = listed

    with patch("housing_app.services.insights.requests.post", return_value=ai_response()) as post:
        result = generate_property_insights(backend, prop)

    assert result == {"property_id": prop.id, "model": "gemini-1.5-flash", "insights": "Good value near campus."}
    _, kwargs = post.call_args
    assert kwargs["params"] == {"key": "stored-key"}
    assert "Scholars Inn" in kwargs["json"]["contents"][0]["parts"][0]["text"]


def test_settings_key_wins_over_system_setting(backend, listed, settings):
    settings.GOOGLE_AI_API_KEY = "env-key"
    backend.rpc("set_setting", {"setting_key": "GOOGLE_AI_API_KEY", "setting_value": "stored-key"})

    with patch("housing_app.services.insights.requests.post", return_value=ai_response()) as post:
        generate_property_insights(backend, listed)

    assert post.call_args.kwargs["params"] == {"key": "env-key"}


@pytest.mark.parametrize(
    "response, code",
    [
        (ai_response(status=429), "upstream_error"),
        (ai_response(payload={"candidates": []}), "bad_response"),
    ],
)
def test_insights_upstream_failures(backend, listed, settings, response, code):
    settings.GOOGLE_AI_API_KEY = "env-key"
    with patch("housing_app.services.insights.requests.post", return_value=response):
        with pytest.raises(InsightsError) as exc:
            generate_property_insights(backend, listed)
    assert exc.value.code == code


def test_insights_network_error(backend, listed, settings):
    settings.GOOGLE_AI_API_KEY = "env-key"
    with patch("housing_app.services.insights.requests.post", side_effect=requests.ConnectionError("down")):
        with pytest.raises(InsightsError) as exc:
            generate_property_insights(backend, listed)
    assert exc.value.code == "unavailable"
