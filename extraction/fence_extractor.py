import re
from typing import Dict, Iterable, List, Optional, Tuple

from harness.logging import get_logger

from .data_structures import CodeBlock, ExtractionOutcome, ExtractionWarning


log = get_logger("extraction")

# Opening fence: up to three spaces, then ``` or ~~~ (3+), then an info string
FENCE_OPEN_RE = re.compile(r"^(?P<indent> {0,3})(?P<fence>`{3,}|~{3,})(?P<info>.*)$")

# ATX heading: "# Title", "## Title ##"
HEADING_RE = re.compile(r"^ {0,3}(?P<marks>#{1,6})(?:[ \t]+(?P<title>.*?))?(?:[ \t]+#+)?[ \t]*$")


class FenceExtractor:
    """
    Pulls fenced query snippets out of markdown course documents.

    Only fences whose tag appears in `languages` become CodeBlocks. Every
    other fence is still consumed as code so that headings and fences
    inside it are not misread.
    """

    def __init__(self, languages: Dict[str, str]):
        """
        Args:
            languages: Fence tag -> engine ("relational" or "document").
                       Tags are matched case-insensitively.
        """
        self.languages = {tag.lower(): engine for tag, engine in languages.items()}

    def extract(self, documents: Iterable[Tuple[str, str]]) -> ExtractionOutcome:
        """
        Extract blocks from several documents, keeping the given order.

        Args:
            documents: (document name, document text) pairs

        Returns:
            ExtractionOutcome with blocks in document order, then appearance order
        """
        outcome = ExtractionOutcome()
        for name, text in documents:
            outcome.extend(self.extract_document(name, text))
        return outcome

    def extract_document(self, name: str, text: str) -> ExtractionOutcome:
        """Extract blocks from a single document."""
        outcome = ExtractionOutcome()
        lines = text.splitlines()
        heading = ""
        i = 0

        while i < len(lines):
            line = lines[i]
            opening = self._match_opening(line)

            if opening is None:
                title = self._match_heading(line)
                if title is not None:
                    heading = title
                i += 1
                continue

            indent, fence, tag = opening
            close_at = self._find_closing(lines, i + 1, fence)

            if close_at is None:
                warning = ExtractionWarning(
                    source_document=name,
                    line=i + 1,
                    message=f"Unterminated {fence} fence opened on line {i + 1}"
                            + (f" (tag '{tag}')" if tag else ""),
                )
                outcome.warnings.append(warning)
                log.warning("unterminated_fence", document=name, line=i + 1, tag=tag)
                # The rest of the document is swallowed by the open fence
                break

            engine = self.languages.get(tag)
            if engine is not None:
                body = [self._strip_indent(l, indent) for l in lines[i + 1:close_at]]
                outcome.blocks.append(CodeBlock(
                    source_document=name,
                    heading=heading,
                    language=tag,
                    engine=engine,
                    text="\n".join(body),
                    line_span=(i + 1, close_at + 1),
                    index=len(outcome.blocks),
                ))

            i = close_at + 1

        log.info(
            "blocks_extracted",
            document=name,
            blocks=len(outcome.blocks),
            warnings=len(outcome.warnings),
        )
        return outcome

    def _match_opening(self, line: str) -> Optional[Tuple[int, str, str]]:
        """Return (indent, fence, tag) if the line opens a fence."""
        match = FENCE_OPEN_RE.match(line)
        if not match:
            return None
        fence = match.group("fence")
        info = match.group("info").strip()
        # Backtick fences cannot carry backticks in their info string
        if fence[0] == "`" and "`" in info:
            return None
        tag = info.split()[0].lower() if info else ""
        # Tags like {sql} or sql{.class} are common in course material
        tag = tag.strip("{}.").split("{")[0]
        return len(match.group("indent")), fence, tag

    def _find_closing(self, lines: List[str], start: int, fence: str) -> Optional[int]:
        """Index of the line closing `fence`, searching from `start`."""
        closing = re.compile(r"^ {0,3}" + re.escape(fence[0]) + "{" + str(len(fence)) + r",}[ \t]*$")
        for j in range(start, len(lines)):
            if closing.match(lines[j]):
                return j
        return None

    def _match_heading(self, line: str) -> Optional[str]:
        match = HEADING_RE.match(line)
        if not match:
            return None
        return (match.group("title") or "").strip()

    @staticmethod
    def _strip_indent(line: str, indent: int) -> str:
        """Remove up to `indent` leading spaces, mirroring the opening fence."""
        removable = len(line) - len(line.lstrip(" "))
        return line[min(indent, removable):]
