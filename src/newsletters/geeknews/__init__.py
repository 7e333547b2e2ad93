"""GeekNews newsletter parsing."""

from src.newsletters.geeknews.parser import GeeknewsWeeklyParser

__all__ = ["GeeknewsWeeklyParser"]
