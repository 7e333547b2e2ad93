"""Android Weekly newsletter parsing."""

from src.newsletters.android_weekly.parser import AndroidWeeklyParser

__all__ = ["AndroidWeeklyParser"]
