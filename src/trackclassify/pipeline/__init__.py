from .scheduler import FrameChannel, FrameScheduler, SchedulerStats

__all__ = ["FrameChannel", "FrameScheduler", "SchedulerStats"]
