"""Tests for Kotlin Weekly parser."""

import unittest

from src.newsletters.kotlin_weekly.parser import KotlinWeeklyParser

SAMPLE_EMAIL = """\
Content-Type: text/plain; charset="utf-8"; format="fixed"
Content-Transfer-Encoding: quoted-printable

** ISSUE #468
------------------------------------------------------------
20th of July 2025

Announcements
Develocity Plugin for IntelliJ (https://plugins.jetbrains.com/plugin/27471-=
develocity/)
The Gradle team has released the Develocity plugin for IntelliJ IDEA and An=
droid Studio.
plugins.jetbrains.com

Building Better Agents: What=E2=80=99s New in Koog 0.3.0 (https://blog.jetbrains.com/ai/koog/)
JetBrains has just released Koog 0.3.0.
blog.jetbrains.com

Articles
Flow Marbles (https://terrakok.github.io/FlowMarbles/)
Interactive diagrams of Kotlinx.coroutines Flow.
terrakok.github.io

Flow Marbles (https://terrakok.github.io/FlowMarbles/duplicate)
Same title again.

Contribute
Share your article (https://kotlinweekly.net/contribute)
Send us a link.
"""


class TestKotlinWeeklyParser(unittest.TestCase):
    """Tests for KotlinWeeklyParser class."""

    def setUp(self) -> None:
        """Set up the parser."""
        self.parser = KotlinWeeklyParser()

    def test_is_target(self) -> None:
        """Should match Kotlin Weekly senders only."""
        self.assertTrue(self.parser.is_target("Kotlin Weekly <mailinglist@kotlinweekly.net>"))
        self.assertTrue(self.parser.is_target("newsletter@kotlinweekly.net"))
        self.assertFalse(self.parser.is_target("random@example.com"))

    def test_parse_extracts_items_per_section(self) -> None:
        """Should extract items from each section except Contribute."""
        items = self.parser.parse(SAMPLE_EMAIL)

        self.assertEqual(
            [item.title for item in items],
            [
                "Develocity Plugin for IntelliJ",
                "Building Better Agents: What=E2=80=99s New in Koog 0.3.0",
                "Flow Marbles",
            ],
        )
        self.assertEqual([item.section for item in items], ["Announcements", "Announcements", "Articles"])

    def test_parse_joins_soft_wrapped_links(self) -> None:
        """Should rejoin URLs split by quoted-printable soft breaks."""
        items = self.parser.parse(SAMPLE_EMAIL)

        self.assertEqual(items[0].link, "https://plugins.jetbrains.com/plugin/27471-develocity/")

    def test_parse_builds_body_with_issue_info(self) -> None:
        """Should prefix descriptions with section and issue details."""
        items = self.parser.parse(SAMPLE_EMAIL)

        self.assertEqual(
            items[0].body,
            "[Announcements] Issue #468 (20th of July 2025): "
            "The Gradle team has released the Develocity plugin for IntelliJ IDEA and Android Studio.",
        )
        self.assertEqual(items[0].source_sender_id, "kotlinweekly.net")

    def test_parse_without_sections_returns_empty(self) -> None:
        """Should return no items when no section headers exist."""
        self.assertEqual(self.parser.parse("Hello (https://example.com)"), [])


if __name__ == "__main__":
    unittest.main()
