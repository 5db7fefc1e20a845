from __future__ import annotations

from typing import Any, Dict

from trackclassify.tracking.base import Associator
from trackclassify.tracking.greedy import GreedyCentroidAssociator


def create_associator(backend: str, params: Dict[str, Any]) -> Associator:
    if backend == "greedy_centroid":
        return GreedyCentroidAssociator()
    if backend == "hungarian":
        from trackclassify.tracking.hungarian import HungarianAssociator

        return HungarianAssociator(gated_cost=float(params.get("gated_cost", 1e9)))
    raise ValueError(f"Unknown association backend: {backend}")
