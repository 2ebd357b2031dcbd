# This file defines PipelineRunner.
#
# PipelineRunner is the end-to-end orchestrator for one validation run.
# It integrates together:
#   - a FenceExtractor (markdown -> CodeBlocks),
#   - a BlockValidator (CodeBlocks -> ValidationResults),
#   - an optional ExecutionChecker (runs valid SQL on sample data),
# and returns a RunResult with one DocumentRun per document.

from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from evaluation.execution_check import ExecutionChecker
from extraction.fence_extractor import FenceExtractor
from harness.errors import InputError
from harness.logging import get_logger
from validation.block_validator import BlockValidator

from .data_structures import DocumentRun, RunResult, SourceDocument


log = get_logger("executor")

MARKDOWN_SUFFIXES = (".md", ".markdown")


def discover_documents(paths: Sequence[Path]) -> List[SourceDocument]:
    """
    Expand the given paths into documents.

    Files are taken as given (whatever their suffix). Directories are walked
    recursively for markdown files. A path that does not exist is still
    returned, so that reading it records an InputError for that document.

    Returns:
        SourceDocuments sorted by name, without duplicates
    """
    found = {}
    for path in paths:
        path = Path(path)
        if path.is_dir():
            for candidate in path.rglob("*"):
                if candidate.is_file() and candidate.suffix.lower() in MARKDOWN_SUFFIXES:
                    name = candidate.relative_to(path).as_posix()
                    if len(paths) > 1:
                        name = (Path(path.name) / name).as_posix()
                    found.setdefault(name, SourceDocument(name=name, path=str(candidate)))
        else:
            name = path.as_posix()
            found.setdefault(name, SourceDocument(name=name, path=str(path)))
    return [found[name] for name in sorted(found)]


def read_document(document: SourceDocument) -> str:
    """
    Read a document as UTF-8 text.

    Raises:
        InputError: the file is missing or cannot be decoded
    """
    path = Path(document.path)
    if not path.exists():
        raise InputError.not_found(document.path)
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise InputError.unreadable(document.path, str(e)) from e


class PipelineRunner:
    """
    Runs Extract -> Validate -> (Execute) -> results for a set of documents.

    Responsibilities for each document:
        1. Read it; an unreadable document is recorded and the run continues.
        2. Extract recognized fenced blocks.
        3. Validate the blocks in order with a per-document scope.
        4. Optionally execute valid relational blocks on sample data.
    """

    def __init__(
        self,
        extractor: FenceExtractor,
        validator: BlockValidator,
        execution_checker: Optional[ExecutionChecker] = None,
    ) -> None:
        self.extractor = extractor
        self.validator = validator
        self.execution_checker = execution_checker

    def run(self, documents: Iterable[SourceDocument]) -> RunResult:
        """Check every document; results are ordered by document name."""
        run_result = RunResult()
        for document in sorted(documents, key=lambda d: d.name):
            run_result.documents.append(self.run_document(document))

        if self.execution_checker is not None:
            self.execution_checker.close()
        return run_result

    def run_document(self, document: SourceDocument) -> DocumentRun:
        try:
            text = read_document(document)
        except InputError as e:
            log.warning("document_unreadable", document=document.name, error=e.message)
            return DocumentRun(document=document, input_error=e)

        log.info("document_read", document=document.name, characters=len(text))
        return self.check_text(document, text)

    def check_text(self, document: SourceDocument, text: str) -> DocumentRun:
        """Check already-loaded document text."""
        outcome = self.extractor.extract_document(document.name, text)
        results = self.validator.validate_all(outcome.blocks)
        if self.execution_checker is not None:
            results = [self.execution_checker.check(result) for result in results]
        return DocumentRun(document=document, results=results, warnings=list(outcome.warnings))
