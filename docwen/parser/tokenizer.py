"""
Tokenizer Module for docwen.

This module turns raw C/C++ source text into a stream of code tokens and a
separate list of contiguous comment blocks. It is a small lexer:
string and character literals are kept as opaque tokens, and every
preprocessor directive (including lines joined by a trailing backslash)
becomes a single PREPROCESSOR token that never contributes declarations.
"""

import logging
from bisect import bisect_right
from dataclasses import dataclass, field
from enum import Enum

from ..utils.errors import SyntaxParsingError

# Configure module logger
logger = logging.getLogger(__name__)

MULTI_CHAR_PUNCTUATORS = ("...", "::", "->", "&&")
STRING_PREFIXES = frozenset({"L", "u", "U", "u8"})
RAW_STRING_PREFIXES = frozenset({"R", "LR", "uR", "UR", "u8R"})
MAX_RAW_DELIMITER = 16


class TokenKind(Enum):
    """Lexical category of a code token."""

    IDENTIFIER = "identifier"
    NUMBER = "number"
    STRING = "string"
    CHAR = "char"
    PUNCT = "punct"
    PREPROCESSOR = "preprocessor"


@dataclass(frozen=True)
class Token:
    """Single code token with its 1-based source position."""

    kind: TokenKind
    text: str
    line: int
    column: int
    end_line: int

    def is_punct(self, text: str) -> bool:
        return self.kind is TokenKind.PUNCT and self.text == text

    def is_word(self, text: str) -> bool:
        return self.kind is TokenKind.IDENTIFIER and self.text == text


@dataclass(frozen=True)
class Comment:
    """A single `//` or `/* */` comment as it appears in the source."""

    text: str
    start_line: int
    end_line: int
    trailing: bool
    token_index: int


@dataclass(frozen=True)
class CommentBlock:
    """Maximal run of contiguous comments with no code or blank line between.

    ``token_index`` is the index of the first code token that follows the
    block, so the number of tokens between a block and a declaration is a
    plain subtraction. A trailing block shares its first line with code and
    is never treated as documentation.
    """

    lines: tuple[str, ...]
    start_line: int
    end_line: int
    token_index: int
    trailing: bool = False


@dataclass
class TokenizedSource:
    """Result of tokenizing one file."""

    tokens: list[Token]
    comment_blocks: list[CommentBlock]
    _candidates: list[CommentBlock] = field(
        default_factory=list, init=False, repr=False
    )
    _candidate_indexes: list[int] = field(
        default_factory=list, init=False, repr=False
    )

    def __post_init__(self) -> None:
        self._candidates = [b for b in self.comment_blocks if not b.trailing]
        self._candidate_indexes = [b.token_index for b in self._candidates]

    def comment_before(self, token_index: int) -> CommentBlock | None:
        """Return the nearest non-trailing comment block that precedes a token."""
        position = bisect_right(self._candidate_indexes, token_index) - 1
        if position < 0:
            return None
        return self._candidates[position]


def tokenize(text: str) -> TokenizedSource:
    """
    Tokenize C/C++ source text.

    A leading byte order mark is ignored.

    Args:
        text: Raw file content

    Returns:
        TokenizedSource with code tokens and comment blocks

    Raises:
        SyntaxParsingError: If a block comment or raw string is never closed
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    return Tokenizer(text).tokenize()


class Tokenizer:
    """Single-pass scanner over one file's text."""

    def __init__(self, text: str):
        self.text = text
        self.length = len(text)
        self.pos = 0
        self.line = 1
        self.line_start = 0
        self.tokens: list[Token] = []
        self.comments: list[Comment] = []
        self._last_code_line = 0

    def tokenize(self) -> TokenizedSource:
        text = self.text
        while self.pos < self.length:
            ch = text[self.pos]
            nxt = self._peek(1)
            if ch == "\n":
                self._advance_to(self.pos + 1)
            elif ch in " \t\r\f\v" or (ch == "\\" and nxt in ("\n", "\r")):
                self.pos += 1
            elif ch == "/" and nxt == "/":
                self._scan_line_comment()
            elif ch == "/" and nxt == "*":
                self._scan_block_comment()
            elif ch == "#" and self._at_line_start():
                self._scan_directive()
            elif ch == '"':
                self._scan_quoted(TokenKind.STRING, self.pos)
            elif ch == "'":
                self._scan_quoted(TokenKind.CHAR, self.pos)
            elif _is_identifier_start(ch):
                self._scan_identifier()
            elif ch.isdigit() or (ch == "." and nxt.isdigit()):
                self._scan_number()
            else:
                self._scan_punctuator()

        blocks = self._build_blocks()
        logger.debug(
            f"Tokenized {self.line} lines: {len(self.tokens)} tokens, "
            f"{len(blocks)} comment blocks"
        )
        return TokenizedSource(tokens=self.tokens, comment_blocks=blocks)

    # Cursor helpers

    def _peek(self, offset: int) -> str:
        index = self.pos + offset
        return self.text[index] if index < self.length else ""

    def _at_line_start(self) -> bool:
        return not self.text[self.line_start : self.pos].strip()

    def _advance_to(self, new_pos: int) -> None:
        """Move the cursor forward, keeping line bookkeeping in sync."""
        newlines = self.text.count("\n", self.pos, new_pos)
        if newlines:
            self.line += newlines
            self.line_start = self.text.rfind("\n", self.pos, new_pos) + 1
        self.pos = new_pos

    def _emit(self, kind: TokenKind, start: int, end: int) -> None:
        line = self.line
        column = start - self.line_start + 1
        self._advance_to(end)
        self.tokens.append(
            Token(
                kind=kind,
                text=self.text[start:end],
                line=line,
                column=column,
                end_line=self.line,
            )
        )
        self._last_code_line = self.line

    # Comments

    def _scan_line_comment(self) -> None:
        start = self.pos
        end = self.text.find("\n", start)
        # A trailing backslash splices the next line into the comment
        while end != -1 and self.text[start:end].rstrip("\r").endswith("\\"):
            end = self.text.find("\n", end + 1)
        if end == -1:
            end = self.length
        self._add_comment(start, end)

    def _scan_block_comment(self) -> None:
        start = self.pos
        close = self.text.find("*/", start + 2)
        if close == -1:
            raise SyntaxParsingError(
                f"Unterminated block comment starting at line {self.line}",
                recovery_hint="Close the comment with '*/'",
                line_number=self.line,
            )
        self._add_comment(start, close + 2)

    def _add_comment(self, start: int, end: int) -> None:
        start_line = self.line
        trailing = self._last_code_line == start_line
        self._advance_to(end)
        self.comments.append(
            Comment(
                text=self.text[start:end],
                start_line=start_line,
                end_line=self.line,
                trailing=trailing,
                token_index=len(self.tokens),
            )
        )

    def _build_blocks(self) -> list[CommentBlock]:
        blocks: list[CommentBlock] = []
        run: list[Comment] = []

        def flush() -> None:
            if not run:
                return
            lines: list[str] = []
            for comment in run:
                lines.extend(part.rstrip("\r") for part in comment.text.split("\n"))
            blocks.append(
                CommentBlock(
                    lines=tuple(lines),
                    start_line=run[0].start_line,
                    end_line=run[-1].end_line,
                    token_index=run[0].token_index,
                    trailing=run[0].trailing,
                )
            )
            run.clear()

        for comment in self.comments:
            if run:
                previous = run[-1]
                contiguous = (
                    not comment.trailing
                    and not run[0].trailing
                    and comment.token_index == previous.token_index
                    and comment.start_line <= previous.end_line + 1
                )
                if not contiguous:
                    flush()
            run.append(comment)
        flush()
        return blocks

    # Preprocessor

    def _scan_directive(self) -> None:
        text = self.text
        start = self.pos
        i = start
        while i < self.length:
            c = text[i]
            if c == "\n":
                j = i - 1
                if j > start and text[j] == "\r":
                    j -= 1
                if text[j] == "\\":
                    i += 1
                    continue
                break
            if c == "/" and text.startswith("//", i):
                break
            if c == "/" and text.startswith("/*", i):
                close = text.find("*/", i + 2)
                if close == -1:
                    raise SyntaxParsingError(
                        f"Unterminated block comment in directive at line {self.line}",
                        recovery_hint="Close the comment with '*/'",
                        line_number=self.line,
                    )
                i = close + 2
                continue
            i += 1

        end = i
        while end > start and text[end - 1] in " \t\r":
            end -= 1
        self._emit(TokenKind.PREPROCESSOR, start, end)
        self._advance_to(i)

    # Literals

    def _scan_quoted(self, kind: TokenKind, start: int) -> None:
        """Scan a string or character literal whose opening quote is at pos."""
        text = self.text
        quote = text[self.pos]
        i = self.pos + 1
        while i < self.length:
            c = text[i]
            if c == "\\":
                i += 2
                continue
            if c == quote:
                i += 1
                break
            if c == "\n":
                # Apostrophes in disabled code (#if 0) are common, keep going
                logger.debug(f"Unterminated {kind.value} literal at line {self.line}")
                break
            i += 1
        self._emit(kind, start, min(i, self.length))

    def _scan_raw_string(self, start: int) -> bool:
        """Scan R"delim( ... )delim" with the opening quote at pos."""
        text = self.text
        open_paren = text.find("(", self.pos + 1, self.pos + 2 + MAX_RAW_DELIMITER)
        if open_paren == -1:
            return False
        delimiter = text[self.pos + 1 : open_paren]
        if any(c in delimiter for c in ' \\)"\n\t'):
            return False
        closing = ")" + delimiter + '"'
        close = text.find(closing, open_paren + 1)
        if close == -1:
            raise SyntaxParsingError(
                f"Unterminated raw string literal starting at line {self.line}",
                recovery_hint=f"Close the literal with '{closing}'",
                line_number=self.line,
            )
        self._emit(TokenKind.STRING, start, close + len(closing))
        return True

    def _scan_identifier(self) -> None:
        text = self.text
        start = self.pos
        i = start + 1
        while i < self.length and _is_identifier_part(text[i]):
            i += 1
        word = text[start:i]
        follower = text[i] if i < self.length else ""

        if follower == '"' and word in RAW_STRING_PREFIXES:
            self.pos = i
            if self._scan_raw_string(start):
                return
            self.pos = start
        if follower in ('"', "'") and word in STRING_PREFIXES:
            self.pos = i
            kind = TokenKind.STRING if follower == '"' else TokenKind.CHAR
            self._scan_quoted(kind, start)
            return

        self._emit(TokenKind.IDENTIFIER, start, i)

    def _scan_number(self) -> None:
        text = self.text
        start = self.pos
        i = start + 1
        while i < self.length:
            c = text[i]
            if c.isalnum() or c in "._":
                i += 1
            elif c == "'" and i + 1 < self.length and text[i + 1].isalnum():
                # C++14 digit separator
                i += 1
            elif c in "+-" and text[i - 1] in "eEpP":
                is_hex = text[start : start + 2].lower() == "0x"
                if is_hex and text[i - 1] in "eE":
                    break
                i += 1
            else:
                break
        self._emit(TokenKind.NUMBER, start, i)

    def _scan_punctuator(self) -> None:
        for punctuator in MULTI_CHAR_PUNCTUATORS:
            if self.text.startswith(punctuator, self.pos):
                self._emit(TokenKind.PUNCT, self.pos, self.pos + len(punctuator))
                return
        self._emit(TokenKind.PUNCT, self.pos, self.pos + 1)


def _is_identifier_start(ch: str) -> bool:
    return ch.isalpha() or ch in "_$" or ord(ch) > 127


def _is_identifier_part(ch: str) -> bool:
    return ch.isalnum() or ch in "_$" or ord(ch) > 127
