from .activity import ActivityThresholds, activity_severity, classify_activity

__all__ = ["ActivityThresholds", "activity_severity", "classify_activity"]
