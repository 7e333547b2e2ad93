"""Central enum definitions for the project."""

from enum import StrEnum


class FetchErrorKind(StrEnum):
    """Classification of feed fetch failures."""

    NETWORK = "network"
    CLIENT = "client"
    PARSE = "parse"


class AnalysisRequestType(StrEnum):
    """Shape of an analysis request sent to the model."""

    KEYWORDS = "keywords"
    SUMMARY = "summary"
    FULL = "full"
