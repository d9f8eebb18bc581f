from __future__ import annotations

from chronogarden.activity_log import ACTION_REJECTED, GAMEPLAY_EVENT, ActivityLog
from chronogarden.event import EventBus
from chronogarden.runtime.telemetry import Metrics


def test_activity_log_filters_and_capacity():
    log = ActivityLog(capacity=2)
    log.record(at=1, event_type="A", payload={"value": 1})
    log.record(at=2, event_type="B", payload={"value": 2})
    log.record(at=3, event_type="B", payload={"value": 3})
    events = log.get_recent()
    assert len(events) == 2
    assert events[0].at == 2 and events[1].at == 3
    filtered = log.get_recent(event_type="B")
    assert all(event.event_type == "B" for event in filtered)


def test_activity_helpers_create_payloads():
    log = ActivityLog()
    rejected = log.log_action(at=5, action="plant_crop", status="plot_full", ok=False, message="all 9 plots are in use")
    assert rejected.event_type == ACTION_REJECTED
    assert rejected.summary() == "plant_crop -> plot_full: all 9 plots are in use"
    harvest = log.log_gameplay(at=6, kind="crop_harvested", payload={"crop_id": "tomato"})
    assert harvest.event_type == GAMEPLAY_EVENT
    assert harvest.summary() == "crop_harvested (crop_id=tomato)"
    assert [event.at for event in log.get_recent(tag="crop_harvested")] == [6.0]


def test_metrics_count_actions_and_events():
    metrics = Metrics()
    metrics.record_action("plant_crop", "ok", True)
    metrics.record_action("plant_crop", "plot_full", False)
    metrics.record_event("crop_planted")
    assert metrics.get("actions.ok.plant_crop") == 1.0
    assert metrics.get("actions.rejected.plot_full") == 1.0
    assert metrics.get("events.crop_planted") == 1.0
    assert metrics.snapshot_signature() == Metrics(counters=dict(metrics.counters)).snapshot_signature()


def test_event_bus_delivers_in_order_to_matching_subscribers():
    bus = EventBus()
    seen = []
    bus.subscribe(lambda state, event: seen.append(("all", event.kind)))
    bus.subscribe(lambda state, event: seen.append(("harvest", event.kind)), kinds=("crop_harvested",))
    bus.emit("crop_planted", 1.0, crop_id="carrot")
    bus.emit("crop_harvested", 2.0, crop_id="carrot")
    assert bus.pending == 2
    delivered = bus.dispatch(state=None)
    assert [event.kind for event in delivered] == ["crop_planted", "crop_harvested"]
    assert seen == [("all", "crop_planted"), ("all", "crop_harvested"), ("harvest", "crop_harvested")]
    assert bus.pending == 0
    assert bus.published_counts() == {"crop_harvested": 1, "crop_planted": 1}
