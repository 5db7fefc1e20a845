from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from trackclassify.tracking.base import Associator, Match
from trackclassify.tracking.greedy import distance_matrix
from trackclassify.utils.types import PointXY


@dataclass
class HungarianAssociator(Associator):
    # cost assigned to out-of-gate pairs so the solver never prefers them
    gated_cost: float = 1e9

    def __post_init__(self) -> None:
        from scipy.optimize import linear_sum_assignment

        self._solve = linear_sum_assignment

    def associate(self, track_centers: Sequence[PointXY], det_centers: Sequence[PointXY], gates: Sequence[float]) -> List[Match]:
        cost = distance_matrix(track_centers, det_centers)
        if cost.size == 0:
            return []
        gate_col = np.asarray(gates, dtype=np.float64).reshape(-1, 1)
        gated = np.where(cost < gate_col, cost, self.gated_cost)
        rows, cols = self._solve(gated)
        return sorted((int(r), int(c)) for r, c in zip(rows, cols) if cost[r, c] < gate_col[r, 0])
