import logging
from decimal import Decimal

from pydantic import BaseModel, Field

from housing_app.services.errors import DataError
from housing_app.services.mappers import map_property
from housing_app.services.records import PropertyRecord

logger = logging.getLogger(__name__)

PROPERTY_RELATIONS = ("location", "images", "facilities", "rooms")
LIVE_CHANNEL = "properties-changes"


class PropertyFilters(BaseModel):
    gender: str | None = None
    type: str | None = None
    location: str | None = None
    max_budget: Decimal | None = None
    limit: int = Field(default=20, ge=1)


def fetch_properties(client, filters: PropertyFilters | None = None) -> list[PropertyRecord]:
    """Verified properties, newest first, narrowed by `filters`."""
    filters = filters or PropertyFilters()
    query = client.table("properties").select(related=PROPERTY_RELATIONS).eq("is_verified", True)

    if filters.gender and filters.gender != "common":
        query = query.eq("gender", filters.gender)
    if filters.type:
        query = query.eq("type", filters.type)
    if filters.location:
        query = query.ilike("address", f"%{filters.location}%")
    if filters.max_budget is not None:
        query = query.lte("monthly_price", filters.max_budget)

    rows = query.order("created_at", desc=True).limit(filters.limit).execute()
    return [map_property(row) for row in rows]


class LiveProperties:
    """
    Keeps `items` in step with the `properties` table for as long as the
    `with` block runs.

        with LiveProperties(client, PropertyFilters(gender="girls")) as live:
            render(live.items)
    """

    def __init__(self, client, filters: PropertyFilters | None = None, on_change=None):
        self.client = client
        self.filters = filters or PropertyFilters()
        self.on_change = on_change
        self.items: list[PropertyRecord] = []
        self.error: str | None = None
        self._channel = None

    def refresh(self):
        try:
            self.items = fetch_properties(self.client, self.filters)
            self.error = None
        except DataError as exc:
            logger.warning("could not load properties: %s", exc.message)
            self.error = exc.message
        if self.on_change is not None:
            self.on_change(self.items)
        return self.items

    def _handle_change(self, payload):
        logger.debug("properties %s event, refetching", payload.get("eventType"))
        self.refresh()

    def open(self):
        self.refresh()
        self._channel = (
            self.client.channel(LIVE_CHANNEL)
            .on("postgres_changes", {"event": "*", "schema": "public", "table": "properties"}, self._handle_change)
            .subscribe()
        )
        return self

    def close(self):
        if self._channel is not None:
            self.client.remove_channel(self._channel)
            self._channel = None

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
