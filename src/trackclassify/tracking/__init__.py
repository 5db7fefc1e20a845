from .base import Associator, AssociatorFactory
from .greedy import GreedyCentroidAssociator, greedy_match
from .registry import create_associator
from .tracks import RegistryUpdate, TrackRegistry

__all__ = [
    "Associator",
    "AssociatorFactory",
    "GreedyCentroidAssociator",
    "RegistryUpdate",
    "TrackRegistry",
    "create_associator",
    "greedy_match",
]
