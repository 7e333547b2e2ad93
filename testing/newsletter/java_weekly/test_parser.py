"""Tests for Java Weekly parser."""

import unittest

from src.newsletters.java_weekly.parser import JavaWeeklyParser

SAMPLE_EMAIL = """\
This week's Awesome Java Weekly
Read it on the Web: https://java.libhunt.com/newsletter/494

===================
Awesome Java Weekly
===================
Issue » 494 / Nov 06, 2025

Popular News and Articles
-------------------------
* Value Classes Heap Flattening - What to expect from JEP 401 #JVMLS
  https://youtu.be/NF4CpL_EWFI

* Agent-O-rama: build LLM agents in Java or Clojure
  <https://blog.redplanetlabs.com/2025/11/03/introducing-agent-o-rama>

* Short
  https://example.com/short

* Agent-O-rama: build LLM agents in Java or Clojure
  https://example.com/duplicate

Popular projects
--------------------------------------
* fory - https://www.libhunt.com/r/fory

* opendataloader-pdf - https://www.libhunt.com/r/opendataloader-pdf

* ab - https://www.libhunt.com/r/ab

---
* after-rule - https://www.libhunt.com/r/after
"""


class TestJavaWeeklyParser(unittest.TestCase):
    """Tests for JavaWeeklyParser class."""

    def setUp(self) -> None:
        """Set up the parser."""
        self.parser = JavaWeeklyParser()

    def test_is_target(self) -> None:
        """Should match Java Weekly senders only."""
        self.assertTrue(self.parser.is_target("Java Weekly <newsletter@libhunt.com>"))
        self.assertTrue(self.parser.is_target("java weekly"))
        self.assertFalse(self.parser.is_target("random@example.com"))

    def test_parse_extracts_articles(self) -> None:
        """Should extract article titles with the link from the following lines."""
        items = self.parser.parse(SAMPLE_EMAIL)
        articles = [item for item in items if item.section == "Popular News and Articles"]

        self.assertEqual(len(articles), 2)
        self.assertEqual(
            articles[0].title, "Value Classes Heap Flattening - What to expect from JEP 401 #JVMLS"
        )
        self.assertEqual(articles[0].link, "https://youtu.be/NF4CpL_EWFI")
        self.assertEqual(
            articles[1].link, "https://blog.redplanetlabs.com/2025/11/03/introducing-agent-o-rama"
        )

    def test_parse_extracts_projects_until_rule(self) -> None:
        """Should extract projects and stop at the horizontal rule."""
        items = self.parser.parse(SAMPLE_EMAIL)
        projects = [item for item in items if item.section == "Popular projects"]

        self.assertEqual([p.title for p in projects], ["fory", "opendataloader-pdf"])
        self.assertEqual(projects[0].link, "https://www.libhunt.com/r/fory")

    def test_parse_builds_body_with_issue_info(self) -> None:
        """Should include the issue number and date in the body."""
        items = self.parser.parse(SAMPLE_EMAIL)

        self.assertEqual(
            items[-1].body, "[Popular projects] Issue #494 (Nov 06, 2025): opendataloader-pdf"
        )

    def test_parse_without_sections_returns_empty(self) -> None:
        """Should return no items when neither section is present."""
        self.assertEqual(self.parser.parse("Nothing to see here"), [])


if __name__ == "__main__":
    unittest.main()
