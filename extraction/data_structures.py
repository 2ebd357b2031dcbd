from dataclasses import dataclass, field
from typing import List, Tuple


RELATIONAL = "relational"
DOCUMENT = "document"


@dataclass(frozen=True)
class CodeBlock:
    """
    A fenced query snippet lifted out of a course document.

    Used by:
        - FenceExtractor (output)
        - BlockValidator (input, one ValidationResult per block)
        - ReportExporter (row identity and ordering)

    What it contains:
        source_document -> Path of the document, as given to the extractor
        heading         -> Text of the nearest heading above the fence ("" if none)
        language        -> Lower-cased fence tag (e.g. "sql", "mongodb")
        engine          -> "relational" or "document"
        text            -> Raw snippet text between the fences
        line_span       -> (opening fence line, closing fence line), 1-based
        index           -> Position of the block within its document, 0-based
    """
    source_document: str
    heading: str
    language: str
    engine: str
    text: str
    line_span: Tuple[int, int]
    index: int

    @property
    def position(self) -> Tuple[str, int]:
        """Sort key: document first, then appearance order."""
        return (self.source_document, self.index)

    @property
    def label(self) -> str:
        return f"{self.source_document}:{self.line_span[0]}"


@dataclass(frozen=True)
class ExtractionWarning:
    """
    A malformed fence. Recorded, reported, and never fatal.

    What it contains:
        source_document -> Document containing the fence
        line            -> Line of the opening fence, 1-based
        message         -> Human-readable explanation
    """
    source_document: str
    line: int
    message: str


@dataclass
class ExtractionOutcome:
    """Blocks and warnings produced from one or more documents."""
    blocks: List[CodeBlock] = field(default_factory=list)
    warnings: List[ExtractionWarning] = field(default_factory=list)

    def extend(self, other: "ExtractionOutcome") -> None:
        self.blocks.extend(other.blocks)
        self.warnings.extend(other.warnings)
