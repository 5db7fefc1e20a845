from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from trackclassify.tracking.base import Associator, Match
from trackclassify.utils.types import PointXY


def distance_matrix(track_centers: Sequence[PointXY], det_centers: Sequence[PointXY]) -> np.ndarray:
    if not track_centers or not det_centers:
        return np.zeros((len(track_centers), len(det_centers)), dtype=np.float64)
    t = np.asarray(track_centers, dtype=np.float64).reshape(-1, 2)
    d = np.asarray(det_centers, dtype=np.float64).reshape(-1, 2)
    diff = t[:, None, :] - d[None, :, :]
    return np.sqrt((diff ** 2).sum(axis=2))


def greedy_match(cost: np.ndarray, gates: Sequence[float]) -> List[Match]:
    matches: List[Match] = []
    if cost.size == 0:
        return matches
    used_rows: set[int] = set()
    used_cols: set[int] = set()
    flat = [(float(cost[r, c]), r, c) for r in range(cost.shape[0]) for c in range(cost.shape[1])]
    # stable sort keeps row-major order on distance ties
    flat.sort(key=lambda x: x[0])
    for v, r, c in flat:
        if r in used_rows or c in used_cols:
            continue
        if v >= float(gates[r]):
            continue
        used_rows.add(r)
        used_cols.add(c)
        matches.append((r, c))
    return matches


@dataclass
class GreedyCentroidAssociator(Associator):
    """Nearest-centroid greedy matching.

    Not globally optimal: two entities crossing within the gate may swap ids.
    """

    def associate(self, track_centers: Sequence[PointXY], det_centers: Sequence[PointXY], gates: Sequence[float]) -> List[Match]:
        return greedy_match(distance_matrix(track_centers, det_centers), gates)
