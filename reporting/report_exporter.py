"""
Report building and export.

Turns a RunResult into a ValidationReport (per-document counts plus overall
totals) and writes it as a plain-text summary, JSON, or CSV.
"""

import csv
import io
import json
import sys
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO

from executor.data_structures import DocumentRun, RunResult
from validation.models import ValidationResult

REPORT_FORMATS = ("summary", "json", "csv")

CSV_FIELDS = [
    "document", "line_start", "line_end", "heading", "language",
    "engine", "status", "errors", "warnings", "messages",
]


@dataclass
class DocumentSummary:
    """Counts for one document."""
    document: str
    blocks: int = 0
    passed: int = 0
    failed: int = 0
    warnings: int = 0
    extraction_warnings: int = 0
    input_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.failed == 0 and self.input_error is None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["ok"] = self.ok
        return data


@dataclass
class ValidationReport:
    """Complete validation report."""
    documents: List[DocumentSummary] = field(default_factory=list)
    runs: List[DocumentRun] = field(default_factory=list)

    # Overall totals
    total_documents: int = 0
    total_blocks: int = 0
    passed: int = 0
    failed: int = 0
    warnings: int = 0
    extraction_warnings: int = 0
    input_errors: int = 0

    @property
    def ok(self) -> bool:
        return self.failed == 0 and self.input_errors == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "totals": {
                "documents": self.total_documents,
                "blocks": self.total_blocks,
                "passed": self.passed,
                "failed": self.failed,
                "warnings": self.warnings,
                "extraction_warnings": self.extraction_warnings,
                "input_errors": self.input_errors,
            },
            "documents": [
                dict(summary.to_dict(), **_document_details(run))
                for summary, run in zip(self.documents, self.runs)
            ],
        }


def _result_dict(result: ValidationResult) -> Dict[str, Any]:
    block = result.block
    return {
        "line_start": block.line_span[0],
        "line_end": block.line_span[1],
        "heading": block.heading,
        "language": block.language,
        "engine": block.engine,
        "status": result.status.value,
        "diagnostics": [d.to_dict() for d in result.diagnostics],
    }


def _document_details(run: DocumentRun) -> Dict[str, Any]:
    return {
        "results": [_result_dict(r) for r in run.results],
        "extraction_warning_details": [
            {"line": w.line, "message": w.message} for w in run.warnings
        ],
    }


def build_report(run_result: RunResult) -> ValidationReport:
    """Aggregate per-document counts and totals, keeping document order."""
    report = ValidationReport()

    for run in run_result.documents:
        summary = DocumentSummary(
            document=run.document.name,
            blocks=len(run.results),
            passed=sum(1 for r in run.results if r.is_valid),
            failed=sum(1 for r in run.results if not r.is_valid),
            warnings=sum(len(r.warnings) for r in run.results),
            extraction_warnings=len(run.warnings),
            input_error=run.input_error.message if run.input_error else None,
        )
        report.documents.append(summary)
        report.runs.append(run)

        report.total_blocks += summary.blocks
        report.passed += summary.passed
        report.failed += summary.failed
        report.warnings += summary.warnings
        report.extraction_warnings += summary.extraction_warnings
        if summary.input_error is not None:
            report.input_errors += 1

    report.total_documents = len(report.documents)
    return report


def exit_code(report: ValidationReport) -> int:
    """0 when everything passed, 1 otherwise."""
    return 0 if report.ok else 1


class ReportExporter:
    """Export a ValidationReport in one of the supported formats."""

    def __init__(self, output_path: Optional[Path] = None):
        self.output_path = Path(output_path) if output_path else None

    def export(self, report: ValidationReport, fmt: str = "summary") -> str:
        """
        Render the report and write it to the output file, or stdout.

        Returns:
            The rendered report text
        """
        if fmt == "json":
            content = self.render_json(report)
        elif fmt == "csv":
            content = self.render_csv(report)
        elif fmt == "summary":
            content = self.render_summary(report)
        else:
            raise ValueError(f"Unknown report format '{fmt}'; expected one of {', '.join(REPORT_FORMATS)}")

        self._write(content)
        return content

    def _write(self, content: str) -> None:
        if self.output_path is None:
            self._write_stream(sys.stdout, content)
            return
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.output_path, "w", encoding="utf-8", newline="") as f:
            self._write_stream(f, content)

    @staticmethod
    def _write_stream(stream: TextIO, content: str) -> None:
        stream.write(content)
        if not content.endswith("\n"):
            stream.write("\n")

    def render_json(self, report: ValidationReport) -> str:
        """Full report as JSON."""
        return json.dumps(report.to_dict(), indent=2, sort_keys=True)

    def render_csv(self, report: ValidationReport) -> str:
        """One row per block. Unreadable documents get a row with status input-error."""
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=CSV_FIELDS, lineterminator="\n")
        writer.writeheader()

        for run in report.runs:
            if run.input_error is not None:
                writer.writerow({
                    "document": run.document.name,
                    "status": "input-error",
                    "errors": 1,
                    "warnings": 0,
                    "messages": run.input_error.message,
                })
                continue
            for result in run.results:
                block = result.block
                writer.writerow({
                    "document": run.document.name,
                    "line_start": block.line_span[0],
                    "line_end": block.line_span[1],
                    "heading": block.heading,
                    "language": block.language,
                    "engine": block.engine,
                    "status": result.status.value,
                    "errors": len(result.errors),
                    "warnings": len(result.warnings),
                    "messages": " | ".join(result.messages),
                })

        return buffer.getvalue()

    def render_summary(self, report: ValidationReport) -> str:
        """Human-readable summary."""
        lines = [
            "=" * 60,
            "QUERY SNIPPET VALIDATION REPORT",
            "=" * 60,
            "",
        ]

        for summary, run in zip(report.documents, report.runs):
            status = "PASS" if summary.ok else "FAIL"
            lines.append(
                f"[{status}] {summary.document}: {summary.passed}/{summary.blocks} blocks valid"
                + (f", {summary.warnings} warning(s)" if summary.warnings else "")
            )
            if summary.input_error is not None:
                lines.append(f"    input error: {summary.input_error}")
            for warning in run.warnings:
                lines.append(f"    line {warning.line}: {warning.message}")
            for result in run.results:
                if result.is_valid and not result.warnings:
                    continue
                lines.append(f"    line {result.block.line_span[0]} ({result.block.language}): {result.status.value}")
                for diagnostic in result.diagnostics:
                    if diagnostic.severity.value == "info":
                        continue
                    lines.append(f"      {diagnostic.severity.value}: {diagnostic.message}")

        lines.extend([
            "",
            "RESULTS SUMMARY",
            "-" * 40,
            f"Documents:            {report.total_documents}",
            f"Blocks:               {report.total_blocks}",
            f"Passed:               {report.passed}",
            f"Failed:               {report.failed}",
            f"Warnings:             {report.warnings}",
            f"Extraction warnings:  {report.extraction_warnings}",
            f"Input errors:         {report.input_errors}",
            "",
            f"Overall: {'PASS' if report.ok else 'FAIL'}",
            "=" * 60,
        ])
        return "\n".join(lines)
