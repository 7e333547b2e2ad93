"""ilbuntok newsletter parsing."""

from src.newsletters.ilbuntok.parser import IlbuntokParser

__all__ = ["IlbuntokParser"]
