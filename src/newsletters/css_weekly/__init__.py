"""CSS Weekly newsletter parsing."""

from src.newsletters.css_weekly.parser import CssWeeklyParser

__all__ = ["CssWeeklyParser"]
