import numpy as np

from trackclassify.tracking.greedy import GreedyCentroidAssociator, greedy_match
from trackclassify.tracking.hungarian import HungarianAssociator
from trackclassify.tracking.registry import create_associator
from trackclassify.tracking.tracks import TrackRegistry
from trackclassify.utils.types import Detection


def _det(cls: str, cx: float, cy: float, size: float = 20.0) -> Detection:
    return Detection(class_name=cls, score=0.9, box_xywh=(cx - size / 2, cy - size / 2, size, size))


def _registry(**kw) -> TrackRegistry:
    params = dict(gate_distance=100.0, timeout_s=1.0, size_gate_factor=1.0)
    params.update(kw)
    return TrackRegistry(**params)


def test_greedy_match_prefers_smallest_distance_and_respects_gate() -> None:
    cost = np.array([[5.0, 11.0], [1.0, 5.0]])
    assert greedy_match(cost, gates=[100.0, 100.0]) == [(1, 0), (0, 1)]
    assert greedy_match(cost, gates=[3.0, 3.0]) == [(1, 0)]
    # distance equal to the gate is not a match
    assert greedy_match(np.array([[100.0]]), gates=[100.0]) == []


def test_identity_persists_while_moving_under_gate() -> None:
    reg = _registry()
    ids = []
    for i in range(10):
        reg.expire(i * 0.033)
        reg.update([_det("person", 50.0 + 99.0 * i, 200.0)], timestamp_s=i * 0.033)
        ids.append([t.track_id for t in reg.tracks()])
    assert ids == [[1]] * 10
    t = reg.get(1)
    assert t is not None
    assert t.hits == 10
    assert list(t.velocity_history) == [99.0] * 5


def test_detection_beyond_gate_spawns_new_track() -> None:
    reg = _registry()
    reg.update([_det("person", 100.0, 100.0)], timestamp_s=0.0)
    out = reg.update([_det("person", 201.0, 100.0)], timestamp_s=0.033)
    assert [t.track_id for t in out.created] == [2]
    assert out.matched == []
    assert len(reg) == 2
    assert reg.get(2).activity == "New"


def test_size_adaptive_gate_follows_large_boxes() -> None:
    reg = _registry()
    reg.update([Detection("person", 0.9, (100.0, 100.0, 50.0, 150.0))], timestamp_s=0.0)
    out = reg.update([Detection("person", 0.9, (100.0, 250.0, 50.0, 150.0))], timestamp_s=0.033)
    assert [t.track_id for t in out.matched] == [1]
    assert reg.get(1).last_displacement == 150.0


def test_classes_are_associated_separately() -> None:
    reg = _registry()
    reg.update([_det("person", 100.0, 100.0), _det("backpack", 105.0, 100.0)], timestamp_s=0.0)
    out = reg.update([_det("backpack", 100.0, 100.0)], timestamp_s=0.033)
    assert [(t.track_id, t.class_name) for t in out.matched] == [(2, "backpack")]
    assert reg.get(1).matched_this_frame is False


def test_untracked_classes_are_ignored() -> None:
    reg = _registry(tracked_classes=["person"])
    reg.update([_det("person", 100.0, 100.0), _det("chair", 300.0, 100.0)], timestamp_s=0.0)
    assert [t.class_name for t in reg.tracks()] == ["person"]


def test_expiry_is_strictly_after_timeout_and_ids_not_reused() -> None:
    reg = _registry()
    reg.update([_det("person", 100.0, 100.0)], timestamp_s=0.0)
    assert reg.expire(1.0) == []
    expired = reg.expire(1.01)
    assert [t.track_id for t in expired] == [1]
    reg.update([_det("person", 100.0, 100.0)], timestamp_s=1.02)
    assert [t.track_id for t in reg.tracks()] == [2]


def test_two_people_keep_their_ids() -> None:
    reg = _registry()
    reg.update([_det("person", 100.0, 100.0), _det("person", 400.0, 100.0)], timestamp_s=0.0)
    reg.update([_det("person", 420.0, 110.0), _det("person", 90.0, 105.0)], timestamp_s=0.033)
    assert reg.get(1).center_xy == (90.0, 105.0)
    assert reg.get(2).center_xy == (420.0, 110.0)


def test_hungarian_finds_lower_total_cost_than_greedy() -> None:
    tracks = [(0.0, 0.0), (6.0, 0.0)]
    dets = [(5.0, 0.0), (11.0, 0.0)]
    gates = [100.0, 100.0]
    assert GreedyCentroidAssociator().associate(tracks, dets, gates) == [(1, 0), (0, 1)]
    assert HungarianAssociator().associate(tracks, dets, gates) == [(0, 0), (1, 1)]
    assert HungarianAssociator().associate(tracks, dets, [3.0, 3.0]) == [(1, 0)]


def test_create_associator_backends() -> None:
    assert isinstance(create_associator("greedy_centroid", {}), GreedyCentroidAssociator)
    assert isinstance(create_associator("hungarian", {}), HungarianAssociator)
    try:
        create_associator("nope", {})
    except ValueError as e:
        assert "nope" in str(e)
    else:
        raise AssertionError("expected ValueError")
