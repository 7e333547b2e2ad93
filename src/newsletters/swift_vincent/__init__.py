"""Swift with Vincent newsletter parsing."""

from src.newsletters.swift_vincent.parser import SwiftVincentParser

__all__ = ["SwiftVincentParser"]
