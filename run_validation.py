#!/usr/bin/env python3
"""
Query Snippet Validation Runner

Check the SQL and MongoDB snippets in markdown course documents against a
reference schema and collection seed, and report every snippet that names
a table, column, or collection that does not exist.

Usage:
    # Check one chapter
    python run_validation.py docs/chapter3.md

    # Check a whole course tree against a custom schema
    python run_validation.py docs/ --schema schema.sql --seed seed.yaml

    # Machine-readable output
    python run_validation.py docs/ --format json --output results/report.json

    # Also run valid SQL against the sample data
    python run_validation.py docs/ --execute
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from evaluation.execution_check import ExecutionChecker
from executor.pipeline_runner import PipelineRunner, discover_documents
from extraction.fence_extractor import FenceExtractor
from harness.config import HarnessConfig, load_config
from harness.errors import ConfigError
from harness.logging import clear_run_id, configure_logging, get_logger, set_run_id
from reference.loaders import build_registry
from reporting.report_exporter import REPORT_FORMATS, ReportExporter, build_report, exit_code
from validation.block_validator import BlockValidator

EXIT_CONFIG_ERROR = 2

log = get_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="querycheck",
        description="Validate query snippets in markdown course documents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Check every markdown file under docs/
  querycheck docs/

  # Only SQL fences, PostgreSQL syntax
  querycheck docs/ --languages sql,postgresql --dialect postgres

  # CSV report, one row per snippet
  querycheck docs/ --format csv --output report.csv
"""
    )

    parser.add_argument("paths", nargs="+", type=Path, metavar="PATH",
                        help="Markdown file or directory (walked for *.md, *.markdown)")
    parser.add_argument("--config", "-c", type=Path,
                        help="YAML config file (default: ./querycheck.yaml when present)")
    parser.add_argument("--schema", type=Path, help="Reference schema (.sql, .yaml, .json)")
    parser.add_argument("--seed", type=Path, help="Reference collection seed (.yaml, .json)")
    parser.add_argument("--languages", "-l",
                        help="Comma-separated fence tags to check (e.g. sql,mongodb)")
    parser.add_argument("--dialect", help="SQL dialect of relational snippets (default: mysql)")
    parser.add_argument("--format", "-f", choices=REPORT_FORMATS, dest="report_format",
                        help="Report format (default: summary)")
    parser.add_argument("--output", "-o", type=Path, help="Write the report to a file instead of stdout")
    parser.add_argument("--execute", action="store_true", default=None,
                        help="Also run valid SQL snippets against in-memory sample data")
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output (log level INFO)")
    return parser


def resolve_config(args: argparse.Namespace) -> HarnessConfig:
    """
    Merge command-line values over environment and file settings.

    Raises:
        ConfigError: the configuration is missing, malformed or invalid
    """
    level = args.log_level or ("INFO" if args.verbose else None)
    config = load_config(
        args.config,
        schema_path=args.schema,
        seed_path=args.seed,
        include_languages=args.languages,
        dialect=args.dialect,
        report_format=args.report_format,
        output_path=args.output,
        execute_snippets=args.execute,
        logging={"level": level} if level else None,
    )

    # The report owns stdout
    if config.output_path is None and config.logging.destination == "stdout":
        config.logging = config.logging.model_copy(update={"destination": "stderr"})
    return config


def build_runner(config: HarnessConfig) -> PipelineRunner:
    registry = build_registry(config.schema_path, config.seed_path, config.dialect)
    checker = ExecutionChecker(registry, config.dialect) if config.execute_snippets else None
    return PipelineRunner(
        extractor=FenceExtractor(config.include_languages),
        validator=BlockValidator(registry, config.dialect),
        execution_checker=checker,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = resolve_config(args)
        configure_logging(config=config.logging)
        set_run_id()
        runner = build_runner(config)
    except ConfigError as e:
        print(f"querycheck: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    try:
        documents = discover_documents(args.paths)
        log.info("run_started", documents=len(documents), dialect=config.dialect)

        run_result = runner.run(documents)
        report = build_report(run_result)
        ReportExporter(config.output_path).export(report, config.report_format)

        log.info("run_finished", blocks=report.total_blocks, failed=report.failed,
                 input_errors=report.input_errors)
        return exit_code(report)
    finally:
        clear_run_id()


if __name__ == "__main__":
    sys.exit(main())
