"""Java Weekly newsletter parsing."""

from src.newsletters.java_weekly.parser import JavaWeeklyParser

__all__ = ["JavaWeeklyParser"]
