from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from django.utils import timezone

from housing_app.client.listings import LIVE_CHANNEL, LiveProperties, PropertyFilters, fetch_properties
from housing_app.models import Property
from housing_app.services.errors import DataError

pytestmark = pytest.mark.django_db


def names(props):
    return sorted(p.name for p in props)


def test_only_verified_properties_are_listed(backend, property_factory):
    property_factory(name="Listed")
    property_factory(name="Pending", is_verified=False)
    assert names(fetch_properties(backend)) == ["Listed"]


def test_records_carry_relations(backend, property_factory, room_factory):
    prop = property_factory()
    room_factory(prop, room_number="101")
    room_factory(prop, room_number="102", is_available=False)

    [record] = fetch_properties(backend)
    assert record.location.name == "Pune"
    assert [r.room_number for r in record.rooms] == ["101", "102"]
    assert (record.available_rooms, record.total_rooms) == (1, 2)
    assert record.monthly_price == Decimal("8000.00")


def test_newest_first_and_limit(backend, property_factory):
    old = property_factory(name="Old")
    new = property_factory(name="New")
    now = timezone.now()
    Property.objects.filter(pk=old.pk).update(created_at=now - timedelta(days=2))
    Property.objects.filter(pk=new.pk).update(created_at=now)

    assert [p.name for p in fetch_properties(backend)] == ["New", "Old"]
    assert [p.name for p in fetch_properties(backend, PropertyFilters(limit=1))] == ["New"]


def test_gender_filter_and_common_means_any(backend, property_factory):
    property_factory(name="Girls Nest", gender="girls")
    property_factory(name="Boys Den", gender="boys")
    property_factory(name="Shared", gender="common")

    assert names(fetch_properties(backend, PropertyFilters(gender="girls"))) == ["Girls Nest"]
    assert len(fetch_properties(backend, PropertyFilters(gender="common"))) == 3


def test_type_location_and_budget_filters(backend, property_factory):
    property_factory(name="Pune Flat", address="Baner, Pune", monthly_price="9000.00")
    property_factory(name="Pune Budget", address="Kothrud, PUNE", monthly_price="5000.00")
    property_factory(name="Mumbai Office", address="Andheri, Mumbai", monthly_price="4000.00", type="commercial")

    assert names(fetch_properties(backend, PropertyFilters(location="pune"))) == ["Pune Budget", "Pune Flat"]
    assert names(fetch_properties(backend, PropertyFilters(max_budget="5000"))) == ["Mumbai Office", "Pune Budget"]
    assert names(fetch_properties(backend, PropertyFilters(type="commercial"))) == ["Mumbai Office"]
    assert fetch_properties(backend, PropertyFilters(location="pune", max_budget="4500")) == []


def test_limit_must_be_positive():
    with pytest.raises(ValueError):
        PropertyFilters(limit=0)


# --------------------
# Live list
# --------------------
def test_live_list_refetches_on_table_change(backend, property_factory):
    seen = []
    with LiveProperties(backend, on_change=lambda items: seen.append(len(items))) as live:
        assert live.items == []
        property_factory(name="Just Added")
        assert [p.name for p in live.items] == ["Just Added"]

        Property.objects.get(name="Just Added").delete()
        assert live.items == []

    assert seen == [0, 1, 0]


def test_live_list_releases_channel_on_exit(backend):
    with LiveProperties(backend):
        assert [c.name for c in backend.get_channels()] == [LIVE_CHANNEL]
    assert backend.get_channels() == []


def test_live_list_ignores_changes_after_close(backend, property_factory):
    live = LiveProperties(backend).open()
    live.close()
    property_factory()
    assert live.items == []


def test_live_list_reports_fetch_errors():
    client = MagicMock()
    client.table.side_effect = DataError("relation does not exist", code="unknown_table")

    live = LiveProperties(client)
    live.refresh()

    assert live.items == []
    assert live.error == "relation does not exist"
