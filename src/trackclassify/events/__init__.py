from .activity import ActivityChangeRule
from .base import Rule
from .density import DensityRule
from .engine import EventEngine
from .theft import TheftRule
from .weapons import WeaponRule

__all__ = ["ActivityChangeRule", "DensityRule", "EventEngine", "Rule", "TheftRule", "WeaponRule"]
