import pytest

from housing_app.models import Property
from housing_app.services.realtime import CLOSED, SUBSCRIBED, RealtimeError, RealtimeHub

pytestmark = pytest.mark.django_db


def listen(backend, name, config):
    events = []
    channel = backend.channel(name).on("postgres_changes", {"schema": "public", **config}, events.append)
    return channel, events


def test_insert_update_delete_are_broadcast(backend, property_factory):
    channel, events = listen(backend, "props", {"event": "*", "table": "properties"})
    channel.subscribe()

    prop = property_factory(name="Fresh")
    prop.is_featured = True
    prop.save()
    pk = prop.pk
    prop.delete()

    assert [e["eventType"] for e in events] == ["INSERT", "UPDATE", "DELETE"]
    assert events[0]["table"] == "properties"
    assert events[0]["schema"] == "public"
    assert events[0]["new"]["name"] == "Fresh"
    assert events[1]["new"]["is_featured"] is True
    assert events[2]["old"]["id"] == pk


def test_event_and_filter_narrow_delivery(backend, property_factory):
    channel, events = listen(backend, "verified-inserts", {
        "event": "INSERT", "table": "properties", "filter": "is_verified=eq.true",
    })
    channel.subscribe()

    property_factory(name="Hidden", is_verified=False)
    shown = property_factory(name="Shown")
    shown.save()

    assert [e["new"]["name"] for e in events] == ["Shown"]


def test_other_tables_are_not_delivered(backend, property_factory, room_factory):
    channel, events = listen(backend, "rooms-only", {"event": "*", "table": "rooms"})
    channel.subscribe()
    prop = property_factory()
    room_factory(prop)
    assert [e["table"] for e in events] == ["rooms"]


def test_subscribe_and_remove_report_status(backend):
    statuses = []
    channel, _ = listen(backend, "s", {"table": "properties"})
    channel.subscribe(statuses.append)
    assert backend.get_channels() == [channel]

    assert backend.remove_channel(channel) == "ok"
    assert statuses == [SUBSCRIBED, CLOSED]
    assert backend.get_channels() == []


def test_removed_channel_gets_nothing(backend, property_factory):
    channel, events = listen(backend, "gone", {"table": "properties"})
    channel.subscribe()
    backend.remove_channel(channel)
    property_factory()
    assert events == []


def test_context_manager_releases_channel(backend, property_factory):
    events = []
    with backend.channel("scoped").on("postgres_changes", {"table": "properties"}, events.append) as channel:
        property_factory(name="Inside")
        assert channel in backend.get_channels()
    property_factory(name="Outside")

    assert [e["new"]["name"] for e in events] == ["Inside"]
    assert backend.get_channels() == []


def test_listener_failure_does_not_break_others(backend, property_factory):
    def boom(payload):
        raise RuntimeError("listener bug")

    backend.channel("bad").on("postgres_changes", {"table": "properties"}, boom).subscribe()
    good, events = listen(backend, "good", {"table": "properties"})
    good.subscribe()

    property_factory()
    assert Property.objects.count() == 1
    assert len(events) == 1


def test_remove_all_channels(backend):
    for name in ("a", "b"):
        listen(backend, name, {"table": "properties"})[0].subscribe()
    backend.remove_all_channels()
    assert backend.get_channels() == []


def test_bad_bindings_rejected():
    hub = RealtimeHub()
    with pytest.raises(RealtimeError):
        hub.channel("x").on("broadcast", {"table": "properties"}, print)
    with pytest.raises(RealtimeError):
        hub.channel("x").on("postgres_changes", {"event": "TRUNCATE"}, print)
    with pytest.raises(RealtimeError):
        hub.channel("x").on("postgres_changes", {"filter": "price=gt.5"}, print)
