"""Shared test fixtures and helpers."""

import shutil
from collections.abc import Callable
from pathlib import Path

import pytest

from docwen.parser import (
    Declaration,
    DocComment,
    FunctionSignature,
    Parameter,
    SourceFile,
    parse_c_source,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures"
C_PROJECT_DIR = FIXTURES_DIR / "c_project"


def create_test_declaration(
    name: str = "test_func",
    file_path: str = "test.h",
    qualifiers: tuple[str, ...] = (),
    param_types: tuple[str, ...] = (),
    doc_lines: tuple[str, ...] | None = None,
    line_number: int = 2,
    trailing: tuple[str, ...] = (),
) -> Declaration:
    """Helper to create a valid Declaration for tests."""
    parameters = tuple(
        Parameter(type_tokens=tuple(t.split()), name=f"p{i}")
        for i, t in enumerate(param_types)
    )
    doc = None
    if doc_lines is not None:
        doc = DocComment(
            lines=doc_lines,
            file_path=file_path,
            start_line=max(1, line_number - len(doc_lines)),
            end_line=max(1, line_number - 1),
        )
    return Declaration(
        signature=FunctionSignature(
            name=name,
            qualifiers=qualifiers,
            parameters=parameters,
            trailing_qualifiers=trailing,
            return_type="void",
        ),
        file_path=file_path,
        line_number=line_number,
        end_line_number=line_number,
        doc=doc,
    )


@pytest.fixture
def make_declaration() -> Callable[..., Declaration]:
    return create_test_declaration


@pytest.fixture
def parse_text() -> Callable[..., SourceFile]:
    """Parse C/C++ text as if it had been read from ``file_path``."""

    def _parse(text: str, file_path: str = "test.h", max_doc_gap: int = 1) -> SourceFile:
        return parse_c_source(text, file_path, max_doc_gap)

    return _parse


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write a file below tmp_path, creating parent directories."""

    def _write(relative: str, content: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def c_project(tmp_path: Path) -> Path:
    """A writable copy of the sample C/C++ project."""
    destination = tmp_path / "project"
    shutil.copytree(C_PROJECT_DIR, destination)
    return destination
