"""
File-level entry point of the parser.

Reads one C/C++ file, tokenizes it and extracts its declarations. Errors
that concern a single file never escape `load_source_file`; they are
recorded on the returned SourceFile so the rest of the group can still be
processed.
"""

import logging
import time

from ..utils.errors import FileAccessError, ParsingError, SyntaxParsingError
from .declaration_extractor import MAX_DOC_GAP_LINES, extract_declarations
from .models import SourceFile
from .tokenizer import tokenize

logger = logging.getLogger(__name__)


def read_source_text(file_path: str) -> str:
    """
    Read a source file, falling back to latin-1 for non UTF-8 content.

    A leading UTF-8 byte order mark is dropped.

    Raises:
        FileAccessError: If the file is missing or unreadable
    """
    try:
        with open(file_path, "r", encoding="utf-8-sig") as f:
            return f.read()
    except FileNotFoundError:
        error_msg = f"File not found: {file_path}"
        logger.error(error_msg)
        raise FileAccessError(
            error_msg, recovery_hint="Check the file path and ensure the file exists"
        )
    except PermissionError:
        error_msg = f"Permission denied: {file_path}"
        logger.error(error_msg)
        raise FileAccessError(
            error_msg, recovery_hint="Check file permissions and ensure read access"
        )
    except IsADirectoryError:
        error_msg = f"Expected a file but found a directory: {file_path}"
        logger.error(error_msg)
        raise FileAccessError(
            error_msg, recovery_hint="Point the filegroup at source files only"
        )
    except UnicodeDecodeError:
        pass
    except OSError as e:
        error_msg = f"Cannot read {file_path}: {e}"
        logger.error(error_msg)
        raise FileAccessError(
            error_msg, recovery_hint="Check the file path and the filesystem"
        ) from e

    try:
        with open(file_path, "r", encoding="latin-1") as f:
            content = f.read()
    except OSError as e:
        error_msg = f"Cannot read {file_path}: {e}"
        logger.error(error_msg)
        raise FileAccessError(
            error_msg, recovery_hint="Check the file path and the filesystem"
        ) from e
    if content.startswith("\xef\xbb\xbf"):
        content = content[3:]
    logger.warning(f"File {file_path} decoded using latin-1 instead of utf-8")
    return content


def parse_c_source(
    text: str, file_path: str, max_doc_gap: int = MAX_DOC_GAP_LINES
) -> SourceFile:
    """
    Tokenize and extract declarations from already loaded text.

    A lexical error yields a SourceFile with no declarations. Structural
    errors keep whatever was extracted before them.

    Args:
        text: Raw file content
        file_path: Path recorded on the SourceFile and its declarations
        max_doc_gap: Blank lines tolerated between a comment and a declaration

    Returns:
        SourceFile with declarations and any errors found
    """
    source_file = SourceFile(path=file_path)
    try:
        tokenized = tokenize(text)
    except SyntaxParsingError as e:
        logger.warning(f"Lexical error in {file_path}: {e.message}")
        source_file.errors.append(e)
        return source_file

    declarations, errors = extract_declarations(tokenized, file_path, max_doc_gap)
    source_file.declarations.extend(declarations)
    source_file.errors.extend(errors)
    return source_file


def load_source_file(
    file_path: str, max_doc_gap: int = MAX_DOC_GAP_LINES
) -> SourceFile:
    """
    Read and parse one file without raising per-file errors.

    Args:
        file_path: Path to the C/C++ file
        max_doc_gap: Blank lines tolerated between a comment and a declaration

    Returns:
        SourceFile; read failures are recorded in its ``errors``
    """
    start_time = time.time()
    try:
        text = read_source_text(file_path)
    except ParsingError as e:
        return SourceFile(path=file_path, errors=[e])

    source_file = parse_c_source(text, file_path, max_doc_gap)
    parse_duration = time.time() - start_time
    logger.info(
        f"Parsed {file_path} in {parse_duration:.3f}s: found "
        f"{len(source_file.declarations)} declarations"
    )
    return source_file
