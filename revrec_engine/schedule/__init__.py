"""Recognition schedule generation (step 5 timing of the recognition model)"""

from .generator import ScheduleGenerator

__all__ = ["ScheduleGenerator"]
