"""Tests for extraction/fence_extractor.py."""

from __future__ import annotations

from extraction.data_structures import DOCUMENT, RELATIONAL
from extraction.fence_extractor import FenceExtractor


class TestRecognizedBlocks:
    """Fences with recognized tags become CodeBlocks."""

    def test_document_without_fences_yields_nothing(self, extractor: FenceExtractor) -> None:
        """Plain prose has no blocks and no warnings."""
        outcome = extractor.extract_document("intro.md", "# Intro\n\nJust words.\n")

        assert outcome.blocks == []
        assert outcome.warnings == []

    def test_sql_and_mongodb_blocks_in_order(self, extractor: FenceExtractor) -> None:
        """Blocks keep appearance order, engine follows the tag."""
        text = (
            "# Queries\n"
            "```sql\n"
            "SELECT customerNumber FROM customers;\n"
            "```\n"
            "\n"
            "```mongodb\n"
            "db.customers.find({})\n"
            "```\n"
        )

        outcome = extractor.extract_document("ch1.md", text)

        assert [b.language for b in outcome.blocks] == ["sql", "mongodb"]
        assert [b.engine for b in outcome.blocks] == [RELATIONAL, DOCUMENT]
        assert [b.index for b in outcome.blocks] == [0, 1]
        assert outcome.blocks[0].text == "SELECT customerNumber FROM customers;"

    def test_line_span_points_at_fences(self, extractor: FenceExtractor) -> None:
        """line_span is (opening fence line, closing fence line), 1-based."""
        text = "intro\n\n```sql\nSELECT 1;\nSELECT 2;\n```\n"

        block = extractor.extract_document("doc.md", text).blocks[0]

        assert block.line_span == (3, 6)
        assert block.label == "doc.md:3"

    def test_unrecognized_tags_are_skipped(self, extractor: FenceExtractor) -> None:
        """Python, bash and untagged fences are not query snippets."""
        text = (
            "```python\nprint('hi')\n```\n"
            "```\nplain\n```\n"
            "```bash\nls\n```\n"
        )

        outcome = extractor.extract_document("doc.md", text)

        assert outcome.blocks == []
        assert outcome.warnings == []

    def test_tags_are_case_insensitive(self, extractor: FenceExtractor) -> None:
        """SQL and MongoDB tags match regardless of case."""
        text = "```SQL\nSELECT 1;\n```\n```MongoDB\ndb.orders.find()\n```\n"

        outcome = extractor.extract_document("doc.md", text)

        assert [b.language for b in outcome.blocks] == ["sql", "mongodb"]

    def test_brace_style_tags(self, extractor: FenceExtractor) -> None:
        """{sql} and sql{.numberLines} style info strings are recognized."""
        text = "```{sql}\nSELECT 1;\n```\n```sql{.numberLines}\nSELECT 2;\n```\n"

        outcome = extractor.extract_document("doc.md", text)

        assert len(outcome.blocks) == 2

    def test_tilde_fences_and_longer_fences(self, extractor: FenceExtractor) -> None:
        """~~~ fences work, and a longer fence may contain a shorter one."""
        text = "~~~sql\nSELECT 1;\n~~~\n````sql\nSELECT '```';\n```\n````\n"

        outcome = extractor.extract_document("doc.md", text)

        assert len(outcome.blocks) == 2
        assert outcome.blocks[1].text == "SELECT '```';\n```"

    def test_nearest_heading_is_recorded(self, extractor: FenceExtractor) -> None:
        """Each block carries the heading above it."""
        text = (
            "# Chapter 3\n"
            "## Joins\n"
            "```sql\nSELECT 1;\n```\n"
            "## Exercises ##\n"
            "```sql\nSELECT 2;\n```\n"
        )

        blocks = extractor.extract_document("doc.md", text).blocks

        assert [b.heading for b in blocks] == ["Joins", "Exercises"]

    def test_headings_inside_fences_are_ignored(self, extractor: FenceExtractor) -> None:
        """A '#' line inside a fence is code, not a heading."""
        text = "## Real\n```python\n# not a heading\n```\n```sql\nSELECT 1;\n```\n"

        block = extractor.extract_document("doc.md", text).blocks[0]

        assert block.heading == "Real"

    def test_indented_fence_strips_indent(self, extractor: FenceExtractor) -> None:
        """Fences inside list items keep their relative indentation only."""
        text = "1. Run:\n   ```sql\n   SELECT 1\n     FROM dual;\n   ```\n"

        block = extractor.extract_document("doc.md", text).blocks[0]

        assert block.text == "SELECT 1\n  FROM dual;"

    def test_custom_language_map(self) -> None:
        """Only tags in the configured map are extracted."""
        extractor = FenceExtractor({"PostgreSQL": "relational"})
        text = "```sql\nSELECT 1;\n```\n```postgresql\nSELECT 2;\n```\n"

        blocks = extractor.extract_document("doc.md", text).blocks

        assert [b.language for b in blocks] == ["postgresql"]


class TestUnterminatedFences:
    """Malformed fences produce warnings, never failures."""

    def test_unterminated_fence_at_end(self, extractor: FenceExtractor) -> None:
        """One warning, no block for the open fence, earlier blocks kept."""
        text = "```sql\nSELECT 1;\n```\n\n```sql\nSELECT customerNumber FROM customers;\n"

        outcome = extractor.extract_document("doc.md", text)

        assert len(outcome.blocks) == 1
        assert len(outcome.warnings) == 1
        warning = outcome.warnings[0]
        assert warning.source_document == "doc.md"
        assert warning.line == 5
        assert "Unterminated" in warning.message

    def test_unterminated_unrecognized_fence_still_warns(self, extractor: FenceExtractor) -> None:
        """Any open fence swallows the rest of the document."""
        text = "```python\nprint(1)\n```sql\nSELECT 1;\n"

        outcome = extractor.extract_document("doc.md", text)

        assert outcome.blocks == []
        assert len(outcome.warnings) == 1


class TestMultipleDocuments:
    """extract() over several documents."""

    def test_documents_keep_given_order(self, extractor: FenceExtractor) -> None:
        docs = [
            ("a.md", "```sql\nSELECT 1;\n```\n"),
            ("b.md", "```sql\nSELECT 2;\n```\n```sql\nSELECT 3;\n"),
        ]

        outcome = extractor.extract(docs)

        assert [b.position for b in outcome.blocks] == [("a.md", 0), ("b.md", 0)]
        assert [w.source_document for w in outcome.warnings] == ["b.md"]
