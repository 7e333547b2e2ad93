"""Kotlin Weekly newsletter parsing."""

from src.newsletters.kotlin_weekly.parser import KotlinWeeklyParser

__all__ = ["KotlinWeeklyParser"]
