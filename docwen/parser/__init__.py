"""
docwen Parser Module.

This module provides the public API for reading C/C++ source files into
declarations with their attached documentation.
"""

from ..utils.errors import (
    FileAccessError,
    ParsingError,
    StructuralError,
    SyntaxParsingError,
    ValidationError,
)
from .c_parser import load_source_file, parse_c_source, read_source_text
from .declaration_extractor import (
    DeclarationExtractor,
    attach_doc_comment,
    extract_declarations,
)
from .models import (
    Declaration,
    DocComment,
    FunctionSignature,
    Parameter,
    SourceFile,
    strip_comment_markers,
)
from .tokenizer import CommentBlock, Token, TokenizedSource, TokenKind, tokenize

__all__ = [
    "tokenize",
    "Token",
    "TokenKind",
    "CommentBlock",
    "TokenizedSource",
    "attach_doc_comment",
    "extract_declarations",
    "DeclarationExtractor",
    "load_source_file",
    "parse_c_source",
    "read_source_text",
    "strip_comment_markers",
    "DocComment",
    "Parameter",
    "FunctionSignature",
    "Declaration",
    "SourceFile",
    "ParsingError",
    "FileAccessError",
    "SyntaxParsingError",
    "StructuralError",
    "ValidationError",
]
