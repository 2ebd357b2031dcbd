"""Shared fixtures for harness tests."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
import structlog

from extraction.data_structures import DOCUMENT, RELATIONAL, CodeBlock
from extraction.fence_extractor import FenceExtractor
from harness.config import DEFAULT_LANGUAGES
from reference.loaders import build_registry
from reference.schema_registry import SchemaRegistry
from validation.block_validator import BlockValidator


@pytest.fixture(scope="session")
def registry() -> SchemaRegistry:
    """Registry built from the embedded sample schema and seed."""
    return build_registry()


@pytest.fixture
def extractor() -> FenceExtractor:
    return FenceExtractor(DEFAULT_LANGUAGES)


@pytest.fixture
def validator(registry: SchemaRegistry) -> BlockValidator:
    return BlockValidator(registry, "mysql")


@pytest.fixture
def make_block():
    """Build a CodeBlock without going through the extractor."""

    def _make(
        text: str,
        language: str = "sql",
        document: str = "chapter.md",
        index: int = 0,
        line: int = 1,
    ) -> CodeBlock:
        engine = DOCUMENT if language in ("mongodb", "mongo", "mongosh") else RELATIONAL
        return CodeBlock(
            source_document=document,
            heading="",
            language=language,
            engine=engine,
            text=text,
            line_span=(line, line + text.count("\n") + 2),
            index=index,
        )

    return _make


@pytest.fixture
def write_doc(tmp_path: Path):
    """Write a markdown document under tmp_path and return its path."""

    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture(autouse=True)
def _reset_logging():
    """Leave structlog and the root logger as each test found them."""
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
