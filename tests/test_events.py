import logging

from trackclassify.config import EngineConfig
from trackclassify.events.activity import ActivityChangeRule
from trackclassify.events.density import DensityRule
from trackclassify.events.engine import EventEngine
from trackclassify.events.theft import TheftRule
from trackclassify.events.weapons import WeaponRule
from trackclassify.motion.math import euclidean
from trackclassify.utils.types import Detection, Track

VALUABLES = frozenset(("backpack", "laptop"))


def _box(c, size: float = 20.0):
    return (c[0] - size / 2, c[1] - size / 2, size, size)


def _track(tid: int, cls: str, start, end=None, activity: str = "New") -> Track:
    t = Track.start(tid, Detection(cls, 0.9, _box(start)), 0.0, 5, 5)
    if end is not None:
        t.velocity_history.append(euclidean(start, end))
        t.position_history.append(end)
        t.center_xy = end
        t.box_xywh = _box(end)
    t.activity = activity  # type: ignore[assignment]
    return t


def _theft_rule() -> TheftRule:
    return TheftRule(valuable_classes=VALUABLES, suppression_s=5.0)


def test_theft_emits_once_within_suppression_window() -> None:
    rule = _theft_rule()
    person = _track(1, "person", (300.0, 200.0))
    bag = _track(2, "backpack", (320.0, 250.0), (360.0, 250.0))

    first = rule.evaluate([person, bag], 0.0)
    second = rule.evaluate([person, bag], 1.0)
    third = rule.evaluate([person, bag], 6.0)

    assert len(first) == 1
    assert first[0].kind == "TheftSuspected"
    assert first[0].track_ids == (2, 1)
    assert first[0].severity == "high"
    assert second == []
    assert len(third) == 1


def test_theft_requires_displacement_and_nearby_person() -> None:
    rule = _theft_rule()
    person = _track(1, "person", (300.0, 200.0))
    small_move = _track(2, "backpack", (320.0, 250.0), (340.0, 250.0))
    far_person = _track(3, "person", (600.0, 450.0))
    lone_bag = _track(4, "laptop", (100.0, 100.0), (140.0, 100.0))
    assert rule.evaluate([person, small_move], 0.0) == []
    assert rule.evaluate([far_person, lone_bag], 0.0) == []


def test_theft_ignores_objects_not_seen_this_frame_and_picks_nearest_person() -> None:
    rule = _theft_rule()
    near = _track(1, "person", (370.0, 260.0))
    far = _track(3, "person", (250.0, 250.0))
    bag = _track(2, "backpack", (320.0, 250.0), (360.0, 250.0))
    bag.matched_this_frame = False
    assert rule.evaluate([far, near, bag], 0.0) == []
    bag.matched_this_frame = True
    ev = rule.evaluate([far, near, bag], 0.0)
    assert ev[0].track_ids == (2, 1)


def test_theft_thresholds_scale_with_resolution() -> None:
    rule = _theft_rule()
    person = _track(1, "person", (300.0, 200.0))
    bag = _track(2, "backpack", (320.0, 250.0), (360.0, 250.0))
    # 40px move is below 30px * 2
    assert rule.evaluate([person, bag], 0.0, scale=2.0) == []


def test_density_transitions_are_reported_once() -> None:
    rule = DensityRule(low_density_count=10, high_density_count=30)
    events = [e for i, c in enumerate([5, 5, 5, 12, 12, 5]) for e in [rule.update_count(c, float(i))] if e is not None]
    assert len(events) == 2
    assert [e.details["level"] for e in events] == ["Medium", "Low"]
    assert events[0].details["previous_level"] == "Low"
    assert events[0].severity == "medium"
    assert events[0].timestamp_s == 3.0
    assert rule.update_count(30, 9.0).details["level"] == "High"


def test_density_hysteresis_needs_consecutive_frames() -> None:
    rule = DensityRule(hysteresis_frames=2)
    out = [rule.update_count(c, float(i)) for i, c in enumerate([5, 12, 5, 12, 12])]
    assert [e is not None for e in out] == [False, False, False, False, True]
    assert rule.level == "Medium"


def test_density_counts_only_people() -> None:
    rule = DensityRule(low_density_count=2, high_density_count=5)
    tracks = [_track(1, "person", (10.0, 10.0)), _track(2, "person", (50.0, 10.0)), _track(3, "laptop", (90.0, 10.0))]
    ev = rule.evaluate(tracks, 1.0)
    assert ev[0].details["count"] == 2
    assert ev[0].track_ids == ()


def test_activity_change_emitted_on_entry_only() -> None:
    rule = ActivityChangeRule()
    t = _track(1, "person", (100.0, 100.0))
    assert rule.evaluate([t], 0.0) == []
    t.activity = "Running"
    assert len(rule.evaluate([t], 0.1)) == 1
    assert rule.evaluate([t], 0.2) == []
    t.activity = "Standing"
    assert rule.evaluate([t], 0.3) == []
    t.activity = "Walking"
    ev = rule.evaluate([t], 0.4)
    assert ev[0].severity == "low"
    assert ev[0].details["previous_activity"] == "Standing"
    assert ev[0].details["activity"] == "Walking"


def test_activity_rule_ignores_non_person_classes() -> None:
    rule = ActivityChangeRule()
    bag = _track(2, "backpack", (100.0, 100.0), activity="Running")
    assert rule.evaluate([bag], 0.0) == []


def test_malformed_track_is_skipped_and_others_evaluated(caplog) -> None:
    rule = ActivityChangeRule()
    bad = _track(1, "person", (10.0, 10.0), activity="Running")
    del bad.class_name
    good = _track(2, "person", (50.0, 10.0), activity="Jumping")
    with caplog.at_level(logging.WARNING, logger="trackclassify.events.activity"):
        events = rule.evaluate([bad, good], 0.0)
    assert [e.track_ids for e in events] == [(2,)]
    assert "skipped track=1" in caplog.text


def test_weapon_rule_reemits_after_suppression() -> None:
    rule = WeaponRule(suppression_s=5.0)
    knife = _track(7, "knife", (200.0, 200.0))
    a = rule.evaluate([knife], 0.0)
    b = rule.evaluate([knife], 2.0)
    c = rule.evaluate([knife], 5.0)
    assert a[0].kind == "WeaponDetected"
    assert a[0].details["repeat"] is False
    assert b == []
    assert c[0].details["repeat"] is True


def test_prune_forgets_dead_tracks() -> None:
    rule = _theft_rule()
    person = _track(1, "person", (300.0, 200.0))
    bag = _track(2, "backpack", (320.0, 250.0), (360.0, 250.0))
    assert len(rule.evaluate([person, bag], 0.0)) == 1
    rule.prune([1])
    assert len(rule.evaluate([person, bag], 1.0)) == 1


class _BrokenRule:
    name = "broken"

    def evaluate(self, tracks, timestamp_s, scale=1.0):
        raise RuntimeError("boom")

    def prune(self, alive_track_ids) -> None:
        return None

    def reset(self) -> None:
        return None


def test_event_engine_isolates_failing_rule(caplog) -> None:
    engine = EventEngine([_BrokenRule(), WeaponRule()])
    with caplog.at_level(logging.ERROR, logger="trackclassify.events.engine"):
        events = engine.evaluate([_track(1, "gun", (10.0, 10.0))], 0.0)
    assert [e.kind for e in events] == ["WeaponDetected"]
    assert "rule broken failed" in caplog.text


def test_event_engine_from_config_respects_toggles() -> None:
    names = [r.name for r in EventEngine.from_config(EngineConfig()).rules]
    assert names == ["activity", "theft", "weapons", "density"]
    cfg = EngineConfig(theft_enabled=False, density_enabled=False, weapons_enabled=False)
    assert [r.name for r in EventEngine.from_config(cfg).rules] == ["activity"]
