"""
Custom exception classes for docwen.

This module defines the exception hierarchy used throughout the application
for consistent error handling and reporting.
"""

from typing import Optional


class ParsingError(Exception):
    """Base exception for parsing errors."""

    def __init__(
        self,
        message: str,
        recovery_hint: Optional[str] = None,
        line_number: Optional[int] = None,
    ):
        """
        Initialize a parsing error.

        Args:
            message: The error message describing what went wrong
            recovery_hint: Optional hint on how to recover from this error
            line_number: Optional 1-based line where the problem was detected
        """
        self.message = message
        self.recovery_hint = recovery_hint
        self.line_number = line_number
        super().__init__(self.message)


class ValidationError(ParsingError):
    """Exception for validation errors in parsed data."""

    pass


class FileAccessError(ParsingError):
    """Exception for file access related errors."""

    pass


class SyntaxParsingError(ParsingError):
    """Exception for lexical errors such as an unterminated comment."""

    pass


class StructuralError(ParsingError):
    """Exception for unbalanced braces or parentheses.

    A fatal structural error stops extraction for the rest of the file.
    A non-fatal one only describes a region that was skipped.
    """

    def __init__(
        self,
        message: str,
        recovery_hint: Optional[str] = None,
        line_number: Optional[int] = None,
        fatal: bool = True,
    ):
        super().__init__(message, recovery_hint, line_number)
        self.fatal = fatal


class ConfigurationError(Exception):
    """Exception for invalid or unreadable configuration."""

    def __init__(self, message: str, recovery_hint: Optional[str] = None):
        self.message = message
        self.recovery_hint = recovery_hint
        super().__init__(self.message)
