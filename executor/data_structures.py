# executor/data_structures.py
#
# This file defines:
#   - SourceDocument: one course document to check
#   - DocumentRun:    output of checking one SourceDocument through the pipeline
#   - RunResult:      everything one run produced, in report order
#
# These dataclasses are used by PipelineRunner and by the report exporter.

from dataclasses import dataclass, field
from typing import List, Optional

from extraction.data_structures import ExtractionWarning
from harness.errors import InputError
from validation.models import ValidationResult


@dataclass(frozen=True)
class SourceDocument:
    """
    A markdown course document to check.

    Fields:
        name -> Display name used in reports (path relative to the run root
                when the document was found by walking a directory).
        path -> Where the document is read from.
    """
    name: str
    path: str


@dataclass
class DocumentRun:
    """
    Captures the full outcome of checking a single document.

    Fields:
        document     -> The SourceDocument that was checked.
        results      -> One ValidationResult per recognized block, in appearance order.
        warnings     -> ExtractionWarnings raised while reading fences.
        input_error  -> Set when the document could not be read; no blocks then.
    """
    document: SourceDocument
    results: List[ValidationResult] = field(default_factory=list)
    warnings: List[ExtractionWarning] = field(default_factory=list)
    input_error: Optional[InputError] = None

    @property
    def passed(self) -> bool:
        """A document passes when it was read and every block is valid (zero blocks pass)."""
        return self.input_error is None and all(r.is_valid for r in self.results)


@dataclass
class RunResult:
    """All document runs, ordered by document name."""
    documents: List[DocumentRun] = field(default_factory=list)

    @property
    def results(self) -> List[ValidationResult]:
        return [result for run in self.documents for result in run.results]

    @property
    def passed(self) -> bool:
        return all(run.passed for run in self.documents)
