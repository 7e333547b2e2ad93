"""Registry resolving the newsletter parser for a sender."""

import logging
from collections.abc import Sequence

from src.newsletters.android_weekly import AndroidWeeklyParser
from src.newsletters.base.parser import SourceParser
from src.newsletters.css_weekly import CssWeeklyParser
from src.newsletters.geeknews import GeeknewsWeeklyParser
from src.newsletters.ilbuntok import IlbuntokParser
from src.newsletters.java_weekly import JavaWeeklyParser
from src.newsletters.kotlin_weekly import KotlinWeeklyParser
from src.newsletters.swift_vincent import SwiftVincentParser

logger = logging.getLogger(__name__)


def default_parsers() -> list[SourceParser]:
    """Build the supported parsers in priority order."""
    return [
        KotlinWeeklyParser(),
        CssWeeklyParser(),
        JavaWeeklyParser(),
        GeeknewsWeeklyParser(),
        AndroidWeeklyParser(),
        IlbuntokParser(),
        SwiftVincentParser(),
    ]


class ParserRegistry:
    """Ordered set of source parsers.

    The first parser claiming a sender wins. Unknown senders are expected
    and resolve to None rather than an error.
    """

    def __init__(self, parsers: Sequence[SourceParser] | None = None) -> None:
        """Initialise the registry.

        :param parsers: Parsers in priority order. Defaults to every supported source.
        """
        self._parsers = tuple(parsers) if parsers is not None else tuple(default_parsers())

    def find_parser(self, sender: str) -> SourceParser | None:
        """Return the first parser that handles the sender.

        :param sender: Sender display name and/or address.
        :returns: The matching parser, or None if no parser claims the sender.
        """
        for parser in self._parsers:
            if parser.is_target(sender):
                logger.debug(f"Sender {sender!r} matched parser {parser.name}")
                return parser

        logger.info(f"No parser registered for sender {sender!r}")
        return None

    def all_parsers(self) -> list[SourceParser]:
        """Return the registered parsers in priority order."""
        return list(self._parsers)
