"""
Declaration Extractor for docwen.

Walks the token stream of one file with an explicit index and an explicit
stack of open scopes. Namespace, class, struct and union bodies push their
name; every other brace group (function bodies, initializers, enum bodies)
is skipped wholesale. A function is recognized by a name followed by a
balanced parameter list, optional trailing qualifiers and either `;` or a
body. Anything else is treated as a non-function statement and ignored.
"""

import logging
from dataclasses import dataclass

from ..utils.errors import StructuralError
from .models import Declaration, DocComment, FunctionSignature, Parameter
from .tokenizer import Token, TokenizedSource, TokenKind

logger = logging.getLogger(__name__)

MAX_DOC_GAP_LINES = 1

SCOPE_KINDS = frozenset({"class", "struct", "union"})
ACCESS_SPECIFIERS = frozenset({"public", "private", "protected"})
TYPE_KEYWORDS = frozenset(
    {
        "void", "char", "short", "int", "long", "float", "double", "signed",
        "unsigned", "bool", "_Bool", "wchar_t", "char8_t", "char16_t",
        "char32_t", "auto",
    }
)
CV_KEYWORDS = frozenset({"const", "volatile", "register", "restrict", "__restrict"})
ELABORATED_KEYWORDS = frozenset({"struct", "class", "union", "enum", "typename"})
DECL_SPECIFIERS = frozenset(
    {
        "inline", "static", "extern", "virtual", "explicit", "friend",
        "constexpr", "consteval", "constinit", "__inline", "__inline__",
        "__forceinline",
    }
)
GROUP_SKIPPING_WORDS = frozenset(
    {
        "__attribute__", "__declspec", "alignas", "_Alignas", "decltype",
        "typeof", "__typeof__", "noexcept", "throw", "__asm__", "asm",
    }
)
VALUE_WORDS = frozenset({"true", "false", "nullptr", "NULL", "this", "sizeof"})
NON_FUNCTION_NAMES = (
    TYPE_KEYWORDS
    | CV_KEYWORDS
    | ELABORATED_KEYWORDS
    | DECL_SPECIFIERS
    | GROUP_SKIPPING_WORDS
    | VALUE_WORDS
    | frozenset(
        {
            "if", "else", "while", "for", "do", "switch", "case", "default",
            "return", "goto", "break", "continue", "alignof", "typeid",
            "static_assert", "_Static_assert", "new", "delete", "template",
            "typedef", "using", "namespace", "requires", "co_await",
            "co_return", "co_yield", "defined", "mutable", "thread_local",
            "public", "private", "protected",
        }
    )
)
TRAILING_WORDS = frozenset({"const", "volatile", "override", "final"})
SPECIAL_MEMBER_BODIES = frozenset({"0", "default", "delete"})


def attach_doc_comment(
    block_end_line: int,
    declaration_start_line: int,
    intervening_tokens: int,
    max_blank_lines: int = MAX_DOC_GAP_LINES,
) -> bool:
    """
    Decide whether a comment block documents the declaration after it.

    The block must end right before the declaration's first token with no
    code token in between, separated by at most ``max_blank_lines`` blank
    lines. A block ending on the declaration's own first line also counts.

    Args:
        block_end_line: Last line of the comment block
        declaration_start_line: Line of the declaration's first token
        intervening_tokens: Code tokens between the block and the declaration
        max_blank_lines: Largest tolerated number of blank lines in between

    Returns:
        True if the block should be attached as documentation
    """
    if intervening_tokens != 0:
        return False
    gap = declaration_start_line - block_end_line
    return 0 <= gap <= max_blank_lines + 1


def join_tokens(tokens: list[Token]) -> str:
    """Render tokens as text, with a space only between adjacent words."""
    parts: list[str] = []
    previous: Token | None = None
    for token in tokens:
        if previous is not None and _is_wordlike(previous) and _is_wordlike(token):
            parts.append(" ")
        parts.append(token.text)
        previous = token
    return "".join(parts)


def _is_wordlike(token: Token) -> bool:
    return token.kind in (
        TokenKind.IDENTIFIER,
        TokenKind.NUMBER,
        TokenKind.STRING,
        TokenKind.CHAR,
    )


def _strip_own_arguments(segment: str, parameters: frozenset[str]) -> str:
    head, sep, rest = segment.partition("<")
    if not sep or not rest.endswith(">"):
        return segment
    arguments = rest[:-1]
    if any(c in arguments for c in "<(["):
        return segment
    names = [a.strip().removesuffix("...").strip() for a in arguments.split(",")]
    if all(name in parameters for name in names):
        return head
    return segment


@dataclass(frozen=True)
class _Scope:
    names: tuple[str, ...]
    kind: str
    line: int


@dataclass(frozen=True)
class _QualifiedId:
    segments: tuple[str, ...]
    name_token: Token
    start: int
    end: int

    @property
    def name(self) -> str:
        return self.segments[-1]


class _NotAFunction(Exception):
    """Internal signal: the candidate at hand is not a declaration."""

    def __init__(self, resume: int):
        super().__init__(resume)
        self.resume = resume


def extract_declarations(
    source: TokenizedSource,
    file_path: str,
    max_doc_gap: int = MAX_DOC_GAP_LINES,
) -> tuple[list[Declaration], list[StructuralError]]:
    """
    Extract function declarations and definitions from a tokenized file.

    Args:
        source: Output of the tokenizer for one file
        file_path: Path recorded on every Declaration
        max_doc_gap: Blank lines tolerated between a comment and a declaration

    Returns:
        Tuple of (declarations in source order, structural errors). After a
        fatal error the declarations found before it are still returned.
    """
    return DeclarationExtractor(source, file_path, max_doc_gap).extract()


class DeclarationExtractor:
    """Finite-state scan over one file's tokens."""

    def __init__(
        self,
        source: TokenizedSource,
        file_path: str,
        max_doc_gap: int = MAX_DOC_GAP_LINES,
    ):
        self.source = source
        self.tokens = source.tokens
        self.count = len(source.tokens)
        self.file_path = file_path
        self.max_doc_gap = max_doc_gap
        self.scopes: list[_Scope] = []
        self.declarations: list[Declaration] = []
        self.errors: list[StructuralError] = []
        self._resume_after_region = 0

    def extract(self) -> tuple[list[Declaration], list[StructuralError]]:
        index = 0
        try:
            while index < self.count:
                index = self._scan_statement(index)
            if self.scopes:
                scope = self.scopes[-1]
                label = "::".join(scope.names) or scope.kind
                raise StructuralError(
                    f"Scope '{label}' opened at line {scope.line} is never closed",
                    recovery_hint="Check for a missing '}'",
                    line_number=scope.line,
                )
        except StructuralError as e:
            logger.warning(f"Stopped extracting {self.file_path}: {e.message}")
            self.errors.append(e)

        logger.debug(
            f"Extracted {len(self.declarations)} declarations from {self.file_path}"
        )
        return self.declarations, self.errors

    # Statement level

    def _scan_statement(self, i: int) -> int:
        tok = self.tokens[i]
        if tok.kind is TokenKind.PREPROCESSOR or tok.is_punct(";"):
            return i + 1
        if tok.is_punct("}"):
            if not self.scopes:
                raise StructuralError(
                    f"Unmatched '}}' at line {tok.line}",
                    recovery_hint="Check for a missing '{' or an extra '}'",
                    line_number=tok.line,
                )
            self.scopes.pop()
            return i + 1
        if tok.is_punct("{"):
            self.scopes.append(_Scope((), "block", tok.line))
            return i + 1

        if tok.kind is TokenKind.IDENTIFIER:
            if tok.text in ACCESS_SPECIFIERS and self._punct_at(i + 1, ":"):
                return i + 2
            if tok.text == "namespace" or (
                tok.text == "inline" and self._word_at(i + 1, "namespace")
            ):
                pushed = self._try_namespace(i + 1 if tok.text == "inline" else i)
                if pushed is not None:
                    return pushed
            if tok.text == "extern" and self._kind_at(i + 1, TokenKind.STRING):
                if self._punct_at(i + 2, "{"):
                    self.scopes.append(_Scope((), "extern", tok.line))
                    return i + 3
            if tok.text in ("typedef", "using"):
                return self._skip_statement(i)

        return self._scan_declaration(i)

    def _try_namespace(self, i: int) -> int | None:
        j = i + 1
        names: list[str] = []
        while j < self.count:
            tok = self.tokens[j]
            if tok.kind is TokenKind.IDENTIFIER and tok.text != "inline":
                names.append(tok.text)
            elif not (tok.is_punct("::") or tok.is_word("inline")):
                break
            j += 1
        j = self._skip_attributes(j)
        if self._punct_at(j, "{"):
            self.scopes.append(_Scope(tuple(names), "namespace", self.tokens[i].line))
            return j + 1
        return None

    def _try_class_head(self, i: int) -> int | None:
        """Push a scope for `class|struct|union [Name] [: bases] {`."""
        kind = self.tokens[i].text
        names: tuple[str, ...] = ()
        in_bases = False
        j = i + 1
        while j < self.count:
            tok = self.tokens[j]
            if tok.is_punct("{"):
                self.scopes.append(_Scope(names, kind, self.tokens[i].line))
                return j + 1
            if tok.kind is TokenKind.PREPROCESSOR:
                return None
            if tok.kind is TokenKind.PUNCT and tok.text in (";", "(", "=", "}", ")"):
                return None
            if tok.is_punct(":"):
                in_bases = True
                j += 1
            elif tok.is_punct("[") and self._punct_at(j + 1, "["):
                j = self._skip_group(j, "[", "]")
            elif tok.text in GROUP_SKIPPING_WORDS and self._punct_at(j + 1, "("):
                j = self._skip_group(j + 1, "(", ")")
            elif tok.is_punct("<"):
                close = self._match_angle(j)
                j = close + 1 if close is not None else j + 1
            elif (
                not in_bases
                and tok.kind is TokenKind.IDENTIFIER
                and tok.text != "final"
            ):
                # The last name before the base clause wins: `class EXPORT Foo`
                qid = self._parse_qualified_id(j)
                names = qid.segments if qid is not None else names
                j = qid.end if qid is not None else j + 1
            else:
                j += 1
        return None

    def _skip_statement(self, i: int) -> int:
        j = i
        while j < self.count:
            tok = self.tokens[j]
            if tok.is_punct(";"):
                return j + 1
            if tok.is_punct("}"):
                return j
            if tok.is_punct("{"):
                j = self._skip_group(j, "{", "}")
                continue
            j += 1
        return j

    def _scan_declaration(self, i: int) -> int:
        start = i
        j = i
        initializer = False
        while j < self.count:
            tok = self.tokens[j]
            if tok.kind is TokenKind.PREPROCESSOR:
                return j
            if tok.kind is TokenKind.PUNCT:
                if tok.text == ";":
                    return j + 1
                if tok.text == "}":
                    return j
                if tok.text == "{":
                    j = self._skip_group(j, "{", "}")
                elif tok.text == "(":
                    j = self._skip_parens(j)
                    if j is None:
                        return self._resume_after_region
                elif tok.text == "[":
                    j = self._skip_group(j, "[", "]")
                elif tok.text == "=":
                    initializer = True
                    j += 1
                elif tok.text == "<":
                    close = self._match_angle(j)
                    j = close + 1 if close is not None else j + 1
                else:
                    if tok.text in ("::", "~") and not initializer:
                        j = self._scan_name(start, j)
                        if j < 0:
                            return -j
                    else:
                        j += 1
                continue

            if tok.kind is not TokenKind.IDENTIFIER:
                j += 1
                continue
            if tok.text in ACCESS_SPECIFIERS and self._punct_at(j + 1, ":"):
                start = j = j + 2
                continue
            if tok.text in SCOPE_KINDS and not (
                j > 0 and self.tokens[j - 1].is_word("enum")
            ):
                pushed = self._try_class_head(j)
                if pushed is not None:
                    return pushed
            if tok.text == "template" and self._punct_at(j + 1, "<"):
                close = self._match_angle(j + 1)
                j = close + 1 if close is not None else j + 2
                continue
            if tok.text in GROUP_SKIPPING_WORDS and self._punct_at(j + 1, "("):
                j = self._skip_parens(j + 1)
                if j is None:
                    return self._resume_after_region
                continue
            if initializer:
                j += 1
                continue

            j = self._scan_name(start, j)
            if j < 0:
                return -j
            if j > 0 and self._macro_boundary(start, j):
                start = j
        return j

    def _scan_name(self, start: int, j: int) -> int:
        """
        Parse a qualified name at ``j`` and try it as a function declarator.

        Returns the index to continue scanning from, or a negated index when
        the statement is finished (a declaration was recorded or a region
        was abandoned).
        """
        qid = self._parse_qualified_id(j)
        if qid is None:
            return j + 1
        if not self._punct_at(qid.end, "(") or qid.name in NON_FUNCTION_NAMES:
            return qid.end
        try:
            return -self._try_function(start, qid)
        except _NotAFunction as signal:
            return signal.resume

    def _macro_boundary(self, start: int, j: int) -> bool:
        """
        Whether a macro use ending just before ``j`` closes the statement.

        `NAME(args)` followed by code on a later line ends it, and so does a
        lone `NAME` when a comment block separates it from the next line.
        """
        if j >= self.count:
            return False
        prev = self.tokens[j - 1]
        tok = self.tokens[j]
        if (
            tok.kind is not TokenKind.IDENTIFIER
            or tok.line <= prev.end_line
            or tok.text in TRAILING_WORDS
        ):
            return False
        if prev.is_punct(")"):
            return True
        if (
            j - 1 == start
            and prev.kind is TokenKind.IDENTIFIER
            and prev.text not in NON_FUNCTION_NAMES
        ):
            block = self.source.comment_before(j)
            return block is not None and block.token_index == j
        return False

    # Function recognition

    def _try_function(self, start: int, qid: _QualifiedId) -> int:
        open_index = qid.end
        close_index = self._find_close_paren(open_index)
        if close_index is None:
            raise _NotAFunction(-self._resume_after_region)

        parameters = self._parse_parameters(open_index + 1, close_index)
        if parameters is None:
            raise _NotAFunction(close_index + 1)

        k, trailing, trailing_return = self._scan_trailing(close_index + 1)
        signature_end = self.tokens[k - 1]
        tok = self.tokens[k] if k < self.count else None
        is_definition = False
        if tok is None:
            raise _NotAFunction(k)
        if tok.is_punct(";"):
            resume = k + 1
        elif tok.is_punct("{"):
            resume = self._skip_group(k, "{", "}")
            is_definition = True
        elif (
            tok.is_punct("=")
            and k + 2 < self.count
            and self.tokens[k + 1].text in SPECIAL_MEMBER_BODIES
            and self.tokens[k + 2].is_punct(";")
        ):
            trailing.append(f"= {self.tokens[k + 1].text}")
            signature_end = self.tokens[k + 1]
            resume = k + 3
        elif tok.is_punct(":"):
            body = self._skip_initializer_list(k)
            if body is None:
                raise _NotAFunction(k)
            resume = self._skip_group(body, "{", "}")
            is_definition = True
        else:
            raise _NotAFunction(close_index + 1)

        return_tokens = self._return_tokens(start, qid.start)
        if not self._has_plausible_return(return_tokens, qid):
            # `MACRO(x);` at file scope: the statement is over either way
            raise _NotAFunction(-resume)

        is_friend = any(t.is_word("friend") for t in return_tokens)
        return_type = join_tokens(
            [
                t
                for t in return_tokens
                if t.kind is not TokenKind.STRING and t.text not in DECL_SPECIFIERS
            ]
        )
        if trailing_return:
            return_type = trailing_return

        signature = FunctionSignature(
            name=qid.name,
            qualifiers=self._scope_path(friend=is_friend)
            + self._out_of_line_qualifiers(start, qid),
            parameters=tuple(parameters),
            trailing_qualifiers=tuple(trailing),
            return_type=return_type,
        )
        first = self.tokens[start]
        declaration = Declaration(
            signature=signature,
            file_path=self.file_path,
            line_number=first.line,
            end_line_number=max(signature_end.end_line, first.line),
            column=qid.name_token.column,
            doc=self._find_doc(start),
            is_definition=is_definition,
        )
        self.declarations.append(declaration)
        logger.debug(
            f"Found {'definition' if is_definition else 'declaration'} "
            f"{signature.qualified_name} at {declaration.location}"
        )
        return resume

    def _has_plausible_return(
        self, return_tokens: list[Token], qid: _QualifiedId
    ) -> bool:
        """Constructors, destructors and conversions are the only typeless functions."""
        if any(
            t.kind is not TokenKind.STRING and t.text not in DECL_SPECIFIERS
            for t in return_tokens
        ):
            return True
        if qid.name.startswith("operator"):
            return True
        if len(qid.segments) > 1:
            return True
        scope = self.scopes[-1] if self.scopes else None
        if scope is not None and scope.kind in SCOPE_KINDS and scope.names:
            class_name = scope.names[-1].split("<", 1)[0]
            return qid.name in (class_name, f"~{class_name}")
        return False

    def _scan_trailing(self, k: int) -> tuple[int, list[str], str]:
        """Consume qualifiers after the parameter list."""
        trailing: list[str] = []
        trailing_return = ""
        while k < self.count:
            tok = self.tokens[k]
            if tok.kind is TokenKind.IDENTIFIER and tok.text in TRAILING_WORDS:
                trailing.append(tok.text)
                k += 1
            elif tok.is_punct("&") or tok.is_punct("&&"):
                trailing.append(tok.text)
                k += 1
            elif tok.is_word("noexcept") or tok.is_word("throw"):
                end = k + 1
                if self._punct_at(end, "("):
                    end = self._skip_group(end, "(", ")")
                trailing.append(join_tokens(self.tokens[k:end]))
                k = end
            elif tok.text in ("__attribute__", "__declspec") and self._punct_at(
                k + 1, "("
            ):
                k = self._skip_group(k + 1, "(", ")")
            elif tok.is_punct("[") and self._punct_at(k + 1, "["):
                k = self._skip_group(k, "[", "]")
            elif tok.is_punct("->"):
                end = k + 1
                while end < self.count:
                    nxt = self.tokens[end]
                    if nxt.kind is TokenKind.PUNCT and nxt.text in (";", "{", "=", "}"):
                        break
                    if nxt.kind is TokenKind.IDENTIFIER and nxt.text in (
                        "override",
                        "final",
                    ):
                        break
                    if nxt.is_punct("("):
                        end = self._skip_group(end, "(", ")")
                    elif nxt.is_punct("<"):
                        close = self._match_angle(end)
                        end = close + 1 if close is not None else end + 1
                    else:
                        end += 1
                trailing_return = join_tokens(self.tokens[k + 1 : end])
                k = end
            elif tok.is_word("requires"):
                k += 1
                while k < self.count and not (
                    self.tokens[k].kind is TokenKind.PUNCT
                    and self.tokens[k].text in (";", "{", "}")
                ):
                    if self.tokens[k].is_punct("("):
                        k = self._skip_group(k, "(", ")")
                    else:
                        k += 1
            elif (
                tok.kind is TokenKind.IDENTIFIER
                and tok.text.startswith("__")
                and tok.text not in GROUP_SKIPPING_WORDS
            ):
                # Reserved-name annotation macros such as __THROW or __wur
                k += 1
                if self._punct_at(k, "("):
                    k = self._skip_group(k, "(", ")")
            else:
                break
        return k, trailing, trailing_return

    def _skip_initializer_list(self, k: int) -> int | None:
        """Skip `: a(x), b{y}` and return the index of the body's `{`."""
        m = k + 1
        while m < self.count:
            while m < self.count and not (
                self.tokens[m].is_punct("(") or self.tokens[m].is_punct("{")
            ):
                if self.tokens[m].kind is TokenKind.PUNCT and self.tokens[m].text in (
                    ";",
                    "}",
                ):
                    return None
                if self.tokens[m].is_punct("<"):
                    close = self._match_angle(m)
                    m = close + 1 if close is not None else m + 1
                    continue
                m += 1
            if m >= self.count:
                return None
            if self.tokens[m].is_punct("("):
                m = self._skip_group(m, "(", ")")
            else:
                m = self._skip_group(m, "{", "}")
            if self._punct_at(m, "..."):
                m += 1
            if self._punct_at(m, ","):
                m += 1
                continue
            if self._punct_at(m, "{"):
                return m
            return None
        return None

    def _out_of_line_qualifiers(self, start: int, qid: _QualifiedId) -> tuple[str, ...]:
        """
        Qualifiers written in the declarator.

        `Foo<T>` where every argument is a parameter of a preceding
        `template<...>` prefix names the primary template, so it becomes
        `Foo` like the in-class declaration. Specializations keep their
        arguments.
        """
        qualifiers = qid.segments[:-1]
        parameters = self._template_parameters(start, qid.start)
        if not parameters:
            return qualifiers
        return tuple(_strip_own_arguments(q, parameters) for q in qualifiers)

    def _template_parameters(self, start: int, stop: int) -> frozenset[str]:
        names: set[str] = set()
        j = start
        while j < stop:
            if not (self.tokens[j].is_word("template") and self._punct_at(j + 1, "<")):
                j += 1
                continue
            close = self._match_angle(j + 1)
            if close is None:
                break
            depth = 0
            last: str | None = None
            in_default = False
            for k in range(j + 2, close + 1):
                tok = self.tokens[k]
                if k == close or (depth == 0 and tok.is_punct(",")):
                    if last is not None:
                        names.add(last)
                    last, in_default = None, False
                elif tok.kind is TokenKind.PUNCT and tok.text in ("<", "(", "["):
                    depth += 1
                elif tok.kind is TokenKind.PUNCT and tok.text in (">", ")", "]"):
                    depth -= 1
                elif depth == 0 and tok.is_punct("="):
                    in_default = True
                elif (
                    depth == 0
                    and not in_default
                    and tok.kind is TokenKind.IDENTIFIER
                    and tok.text not in ELABORATED_KEYWORDS
                ):
                    last = tok.text
            j = close + 1
        return frozenset(names)

    def _return_tokens(self, start: int, stop: int) -> list[Token]:
        """Tokens before the name, minus template prefixes and attributes."""
        result: list[Token] = []
        j = start
        while j < stop:
            tok = self.tokens[j]
            if tok.is_word("template") and self._punct_at(j + 1, "<"):
                close = self._match_angle(j + 1)
                j = close + 1 if close is not None else j + 2
            elif tok.is_punct("[") and self._punct_at(j + 1, "["):
                j = self._skip_group(j, "[", "]")
            elif tok.text in GROUP_SKIPPING_WORDS and self._punct_at(j + 1, "("):
                end = self._skip_group(j + 1, "(", ")")
                if tok.text in ("decltype", "typeof", "__typeof__"):
                    result.extend(self.tokens[j:end])
                j = end
            elif tok.kind is TokenKind.PREPROCESSOR:
                j += 1
            else:
                result.append(tok)
                j += 1
        return result

    def _scope_path(self, friend: bool = False) -> tuple[str, ...]:
        path: list[str] = []
        for scope in self.scopes:
            if friend and scope.kind in SCOPE_KINDS:
                continue
            path.extend(scope.names)
        return tuple(path)

    def _find_doc(self, start: int) -> DocComment | None:
        block = self.source.comment_before(start)
        if block is None:
            return None
        first = self.tokens[start]
        if not attach_doc_comment(
            block.end_line,
            first.line,
            start - block.token_index,
            self.max_doc_gap,
        ):
            return None
        return DocComment(
            lines=block.lines,
            file_path=self.file_path,
            start_line=block.start_line,
            end_line=block.end_line,
        )

    # Parameters

    def _parse_parameters(self, begin: int, end: int) -> list[Parameter] | None:
        """Split a parameter list at top-level commas and parse each entry."""
        if begin == end:
            return []

        groups: list[list[Token]] = [[]]
        depth = 0
        angle = 0
        in_default = False
        for tok in self.tokens[begin:end]:
            if tok.kind is TokenKind.PUNCT:
                if tok.text in "([{":
                    depth += 1
                elif tok.text in ")]}":
                    depth -= 1
                elif depth == 0 and not in_default and tok.text == "<":
                    angle += 1
                elif depth == 0 and not in_default and tok.text == ">" and angle:
                    angle -= 1
                elif depth == 0 and angle == 0 and tok.text == "=":
                    in_default = True
                elif depth == 0 and angle == 0 and tok.text == ",":
                    groups.append([])
                    in_default = False
                    continue
            groups[-1].append(tok)

        parameters: list[Parameter] = []
        for group in groups:
            parameter = _parse_parameter(group)
            if parameter is None:
                return None
            parameters.append(parameter)

        if (
            len(parameters) == 1
            and parameters[0].type_tokens == ("void",)
            and parameters[0].name is None
        ):
            return []
        return parameters

    # Names

    def _parse_qualified_id(self, j: int) -> _QualifiedId | None:
        start = j
        segments: list[str] = []
        name_token: Token | None = None
        if self._punct_at(j, "::"):
            j += 1
        while j < self.count:
            tok = self.tokens[j]
            if tok.is_word("operator"):
                name, j = self._parse_operator_name(j)
                segments.append(name)
                name_token = tok
                break
            if tok.is_punct("~") and self._kind_at(j + 1, TokenKind.IDENTIFIER):
                segments.append("~" + self.tokens[j + 1].text)
                name_token = tok
                j += 2
                break
            if tok.kind is not TokenKind.IDENTIFIER:
                break
            segment = tok.text
            name_token = tok
            j += 1
            if self._punct_at(j, "<") and segment not in NON_FUNCTION_NAMES:
                close = self._match_angle(j)
                if close is not None:
                    segment += join_tokens(self.tokens[j : close + 1])
                    j = close + 1
            segments.append(segment)
            if self._punct_at(j, "::") and (
                self._kind_at(j + 1, TokenKind.IDENTIFIER) or self._punct_at(j + 1, "~")
            ):
                j += 1
                continue
            break
        if not segments or name_token is None:
            return None
        return _QualifiedId(tuple(segments), name_token, start, j)

    def _parse_operator_name(self, j: int) -> tuple[str, int]:
        m = j + 1
        if self._punct_at(m, "(") and self._punct_at(m + 1, ")"):
            return "operator()", m + 2
        if m < self.count and self.tokens[m].text in ("new", "delete"):
            name = f"operator {self.tokens[m].text}"
            m += 1
            if self._punct_at(m, "[") and self._punct_at(m + 1, "]"):
                name += "[]"
                m += 2
            return name, m
        if self._kind_at(m, TokenKind.STRING) and self._kind_at(
            m + 1, TokenKind.IDENTIFIER
        ):
            return f'operator""{self.tokens[m + 1].text}', m + 2

        parts: list[Token] = []
        while m < self.count:
            tok = self.tokens[m]
            if tok.kind is TokenKind.PUNCT and tok.text in ("(", ";", "{", "}"):
                break
            parts.append(tok)
            m += 1
        text = join_tokens(parts)
        if parts and _is_wordlike(parts[0]):
            return f"operator {text}", m
        return f"operator{text}", m

    # Group matching

    def _match_angle(self, j: int) -> int | None:
        """Index of the `>` closing the `<` at ``j``, or None if it is not a template list."""
        depth = 0
        parens = 0
        k = j
        while k < self.count:
            tok = self.tokens[k]
            if tok.kind is TokenKind.PREPROCESSOR:
                return None
            if tok.kind is TokenKind.PUNCT:
                if tok.text in ("(", "["):
                    parens += 1
                elif tok.text in (")", "]"):
                    parens -= 1
                    if parens < 0:
                        return None
                elif tok.text in (";", "{", "}"):
                    return None
                elif parens == 0 and tok.text == "<":
                    depth += 1
                elif parens == 0 and tok.text == ">":
                    depth -= 1
                    if depth == 0:
                        return k
            k += 1
        return None

    def _skip_group(self, j: int, opening: str, closing: str) -> int:
        """Return the index just past the bracket matching the one at ``j``."""
        depth = 0
        k = j
        while k < self.count:
            tok = self.tokens[k]
            if tok.kind is TokenKind.PUNCT:
                if tok.text == opening:
                    depth += 1
                elif tok.text == closing:
                    depth -= 1
                    if depth == 0:
                        return k + 1
            k += 1
        raise StructuralError(
            f"Unbalanced '{opening}' opened at line {self.tokens[j].line}",
            recovery_hint=f"Check for a missing '{closing}'",
            line_number=self.tokens[j].line,
        )

    def _find_close_paren(self, j: int) -> int | None:
        """
        Find the `)` matching the `(` at ``j``.

        A `;` or an unexpected `}` outside any brace group means the text
        is not a real parameter list, typically a multi-line macro. That
        region is reported as a non-fatal error and ``None`` is returned,
        with ``_resume_after_region`` set to where scanning continues.
        """
        depth = 0
        braces = 0
        k = j
        while k < self.count:
            tok = self.tokens[k]
            if tok.kind is TokenKind.PUNCT:
                if tok.text == "(":
                    depth += 1
                elif tok.text == ")":
                    depth -= 1
                    if depth == 0:
                        return k
                elif tok.text == "{":
                    braces += 1
                elif tok.text == "}" and braces:
                    braces -= 1
                elif braces == 0 and tok.text in (";", "}"):
                    self._report_region(j, k)
                    self._resume_after_region = k + 1 if tok.text == ";" else k
                    return None
            k += 1
        raise StructuralError(
            f"Unbalanced '(' opened at line {self.tokens[j].line}",
            recovery_hint="Check for a missing ')'",
            line_number=self.tokens[j].line,
        )

    def _skip_parens(self, j: int) -> int | None:
        close = self._find_close_paren(j)
        return None if close is None else close + 1

    def _report_region(self, open_index: int, stop_index: int) -> None:
        opened = self.tokens[open_index]
        stopped = self.tokens[stop_index]
        error = StructuralError(
            f"Unbalanced '(' at line {opened.line}: region up to line "
            f"{stopped.line} skipped",
            recovery_hint="Multi-line macros are not expanded; check the region",
            line_number=opened.line,
            fatal=False,
        )
        logger.warning(f"{self.file_path}: {error.message}")
        self.errors.append(error)

    def _skip_attributes(self, j: int) -> int:
        while j < self.count:
            if self._punct_at(j, "[") and self._punct_at(j + 1, "["):
                j = self._skip_group(j, "[", "]")
            elif self.tokens[j].text in GROUP_SKIPPING_WORDS and self._punct_at(
                j + 1, "("
            ):
                j = self._skip_group(j + 1, "(", ")")
            else:
                break
        return j

    # Token predicates

    def _punct_at(self, j: int, text: str) -> bool:
        return j < self.count and self.tokens[j].is_punct(text)

    def _word_at(self, j: int, text: str) -> bool:
        return j < self.count and self.tokens[j].is_word(text)

    def _kind_at(self, j: int, kind: TokenKind) -> bool:
        return j < self.count and self.tokens[j].kind is kind


def _parse_parameter(tokens: list[Token]) -> Parameter | None:
    """Parse one comma-separated entry of a parameter list."""
    if not tokens:
        return None
    first = tokens[0]
    if first.kind in (TokenKind.NUMBER, TokenKind.STRING, TokenKind.CHAR):
        return None
    if first.kind is TokenKind.PUNCT and first.text not in ("::", "...", "["):
        return None
    if first.kind is TokenKind.IDENTIFIER and first.text in VALUE_WORDS:
        return None

    declarator = tokens
    default_value = None
    depth = 0
    for index, tok in enumerate(tokens):
        if tok.kind is not TokenKind.PUNCT:
            continue
        if tok.text in "([{<":
            depth += 1
        elif tok.text in ")]}>":
            depth -= 1
        elif depth == 0 and tok.text == "=":
            declarator = tokens[:index]
            default_value = join_tokens(tokens[index + 1 :])
            break
    if not declarator:
        return None

    declarator = _strip_attributes(declarator)
    name, type_tokens = _split_parameter_name(declarator)
    return Parameter(
        type_tokens=tuple(t.text for t in type_tokens),
        name=name,
        default_value=default_value,
    )


def _strip_attributes(tokens: list[Token]) -> list[Token]:
    result: list[Token] = []
    index = 0
    while index < len(tokens):
        tok = tokens[index]
        nxt = tokens[index + 1] if index + 1 < len(tokens) else None
        if tok.is_punct("[") and nxt is not None and nxt.is_punct("["):
            index = _matching_index(tokens, index, "[", "]") + 1
            continue
        if tok.text in ("__attribute__", "__declspec") and nxt is not None:
            if nxt.is_punct("("):
                index = _matching_index(tokens, index + 1, "(", ")") + 1
                continue
        result.append(tok)
        index += 1
    return result


def _split_parameter_name(tokens: list[Token]) -> tuple[str | None, list[Token]]:
    """Separate the declared name from the type tokens."""
    # Function pointer or reference declarators: type (*name)(args)
    for index, tok in enumerate(tokens[:-1]):
        if tok.is_punct("(") and tokens[index + 1].text in ("*", "&", "&&", "^"):
            close = _matching_index(tokens, index, "(", ")")
            for inner in range(close - 1, index, -1):
                candidate = tokens[inner]
                if (
                    candidate.kind is TokenKind.IDENTIFIER
                    and candidate.text not in CV_KEYWORDS
                ):
                    return candidate.text, tokens[:inner] + tokens[inner + 1 :]
            return None, tokens

    end = len(tokens)
    while end > 0 and tokens[end - 1].is_punct("]"):
        opening = _matching_index_backwards(tokens, end - 1, "[", "]")
        if opening < 0:
            break
        end = opening
    core, suffix = tokens[:end], tokens[end:]
    if len(core) < 2:
        return None, tokens

    last, previous = core[-1], core[-2]
    remaining = core[:-1]
    if (
        last.kind is TokenKind.IDENTIFIER
        and last.text not in TYPE_KEYWORDS
        and last.text not in CV_KEYWORDS
        and not previous.is_punct("::")
        and previous.text not in ELABORATED_KEYWORDS
        and any(t.text not in CV_KEYWORDS for t in remaining)
    ):
        return last.text, remaining + suffix
    return None, tokens


def _matching_index(tokens: list[Token], index: int, opening: str, closing: str) -> int:
    depth = 0
    for position in range(index, len(tokens)):
        if tokens[position].is_punct(opening):
            depth += 1
        elif tokens[position].is_punct(closing):
            depth -= 1
            if depth == 0:
                return position
    return len(tokens) - 1


def _matching_index_backwards(
    tokens: list[Token], index: int, opening: str, closing: str
) -> int:
    depth = 0
    for position in range(index, -1, -1):
        if tokens[position].is_punct(closing):
            depth += 1
        elif tokens[position].is_punct(opening):
            depth -= 1
            if depth == 0:
                return position
    return -1
