from __future__ import annotations

from typing import Any, Dict, List, Protocol, Sequence, Tuple

from trackclassify.utils.types import PointXY

Match = Tuple[int, int]


class Associator(Protocol):
    """Matches live tracks to new detections within one class.

    Returns ``(track_index, detection_index)`` pairs. A pair is only valid when
    the centroid distance is strictly below ``gates[track_index]``; each index
    appears at most once.
    """

    def associate(self, track_centers: Sequence[PointXY], det_centers: Sequence[PointXY], gates: Sequence[float]) -> List[Match]:
        ...


class AssociatorFactory(Protocol):
    def create(self, backend: str, params: Dict[str, Any]) -> Associator:
        ...
