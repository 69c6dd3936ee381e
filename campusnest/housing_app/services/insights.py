import logging

import requests
from django.conf import settings

from housing_app.client.listings import PropertyFilters, fetch_properties

from .errors import DataError, InsightsError
from .records import PropertyRecord, PropertyWithScore

logger = logging.getLogger(__name__)

API_KEY_SETTING = "GOOGLE_AI_API_KEY"

MATCH_REASONS = (
    "High match based on location and amenities",
    "Good price match for your budget",
    "Close to university and good amenities",
)


def get_api_key(client) -> str:
    key = getattr(settings, "GOOGLE_AI_API_KEY", "")
    if key:
        return key
    try:
        return client.rpc("get_setting", {"setting_key": API_KEY_SETTING}) or ""
    except DataError:
        logger.warning("could not read %s system setting", API_KEY_SETTING)
        return ""


def build_prompt(prop: PropertyRecord) -> str:
    facilities = ", ".join(f.name for f in prop.facilities) or "none listed"
    location = prop.location.name if prop.location else prop.address
    lines = [
        "You are helping students choose accommodation.",
        f"Property: {prop.name} ({prop.category}, {prop.gender})",
        f"Location: {location}",
        f"Address: {prop.address}",
        f"Monthly price: {prop.monthly_price}",
    ]
    if prop.daily_price is not None:
        lines.append(f"Daily price: {prop.daily_price}")
    lines += [
        f"Facilities: {facilities}",
        f"Rooms available: {prop.available_rooms} of {prop.total_rooms}",
        f"Description: {prop.description or '-'}",
        "",
        "Give a short assessment of value for money, location and amenities, "
        "followed by three concrete tips for a student considering this property.",
    ]
    return "\n".join(lines)


def generate_property_insights(client, prop: PropertyRecord) -> dict:
    """
    Forward the property to the generative text API and return its answer.
    Single attempt; any failure raises InsightsError.
    """
    api_key = get_api_key(client)
    if not api_key:
        raise InsightsError("AI insights are not configured", code="not_configured")

    model = settings.GOOGLE_AI_MODEL
    url = settings.GOOGLE_AI_ENDPOINT.format(model=model)
    body = {"contents": [{"parts": [{"text": build_prompt(prop)}]}]}

    try:
        resp = requests.post(
            url,
            params={"key": api_key},
            json=body,
            timeout=settings.GOOGLE_AI_TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        logger.warning("insights request for property %s failed: %s", prop.id, exc)
        raise InsightsError("Could not reach the AI service", code="unavailable") from exc

    if resp.status_code != 200:
        logger.warning("insights API returned %s for property %s", resp.status_code, prop.id)
        raise InsightsError(f"AI service error ({resp.status_code})", code="upstream_error")

    try:
        data = resp.json()
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        raise InsightsError("Unexpected response from the AI service", code="bad_response") from exc

    return {"property_id": prop.id, "model": model, "insights": text.strip()}


def _filters_from_preferences(preferences: dict, limit: int) -> PropertyFilters:
    return PropertyFilters(
        gender=preferences.get("gender") or None,
        type=preferences.get("property_type") or preferences.get("propertyType") or None,
        location=preferences.get("location") or None,
        max_budget=preferences.get("budget") or None,
        limit=limit,
    )


def recommend_properties(client, preferences: dict | None = None, limit: int = 5) -> list[PropertyWithScore]:
    """
    Rank up to `limit` matching properties with descending scores
    0.95, 0.85, ... and a short reason for each.
    """
    props = fetch_properties(client, _filters_from_preferences(preferences or {}, limit))
    ranked = []
    for i, prop in enumerate(props):
        score = max(round(0.95 - 0.1 * i, 2), 0.05)
        ranked.append(
            PropertyWithScore(
                **prop.model_dump(),
                score=score,
                match_reason=MATCH_REASONS[min(i, len(MATCH_REASONS) - 1)],
            )
        )
    return ranked
