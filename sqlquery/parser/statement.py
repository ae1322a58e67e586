"""Query template compiler: placeholder extraction and statement typing."""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import sqlglot
from sqlglot.errors import TokenError
from sqlglot.tokens import Token, TokenType

from ..dialects.base import DriverHelper
from ..errors import CompilationError, UnsupportedStatementKindError

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


class StatementKind(Enum):
    """Kind of SQL statement a template holds."""

    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    MERGE = "merge"
    DDL = "ddl"
    OTHER = "other"
    EMPTY = "empty"


_KIND_BY_KEYWORD = {
    "SELECT": StatementKind.SELECT,
    "INSERT": StatementKind.INSERT,
    "UPDATE": StatementKind.UPDATE,
    "DELETE": StatementKind.DELETE,
    "MERGE": StatementKind.MERGE,
    "CREATE": StatementKind.DDL,
    "DROP": StatementKind.DDL,
    "ALTER": StatementKind.DDL,
    "TRUNCATE": StatementKind.DDL,
}

# Keywords that decide the kind of a WITH statement after its CTE list
_CTE_BODY_KEYWORDS = ("SELECT", "INSERT", "UPDATE", "DELETE", "MERGE")

# Tokens whose text is data, never a keyword
_LITERAL_TOKENS = (TokenType.STRING, TokenType.HEREDOC_STRING, TokenType.IDENTIFIER)


@dataclass(frozen=True)
class PlaceholderSpan:
    """One placeholder occurrence: its name and [start, end) offsets."""

    name: str
    start: int
    end: int


@dataclass(frozen=True)
class CompiledStatement:
    """A query template compiled for one dialect.

    ``prepared_sql`` holds one positional marker per entry of
    ``placeholder_names``; ``spans`` keeps the placeholder positions in the
    original template for literal substitution.
    """

    template: str
    kind: StatementKind
    spans: Tuple[PlaceholderSpan, ...]
    prepared_sql: str
    helper: DriverHelper = field(compare=False, repr=False)

    @property
    def placeholder_names(self) -> Tuple[str, ...]:
        """Placeholder names in occurrence order, duplicates kept."""
        return tuple(span.name for span in self.spans)

    @property
    def parameter_count(self) -> int:
        return len(self.spans)

    def substitute(self, rendered: Sequence[str]) -> str:
        """Splice one rendered literal per placeholder span into the template."""
        if len(rendered) != len(self.spans):
            raise ValueError(
                f"Expected {len(self.spans)} rendered values, got {len(rendered)}"
            )
        parts: List[str] = []
        cursor = 0
        for span, text in zip(self.spans, rendered):
            parts.append(self.template[cursor:span.start])
            parts.append(text)
            cursor = span.end
        parts.append(self.template[cursor:])
        return "".join(parts)


def tokenize_template(template: str, dialect: str = "") -> List[Token]:
    """Tokenize a template with sqlglot's tokenizer for ``dialect``.

    Raises:
        CompilationError: on unterminated strings, quoted identifiers or comments
    """
    try:
        return sqlglot.tokenize(template, read=dialect or None)
    except TokenError as exc:
        raise CompilationError(f"Malformed query template: {exc}") from exc


def placeholder_spans(template: str, tokens: Sequence[Token]) -> List[PlaceholderSpan]:
    """Collect ``:name`` placeholders from a template's token stream.

    A placeholder is a ``:`` token immediately followed by a word token.
    Strings of every quoting style, quoted identifiers, comments and ``::``
    casts never produce such a pair.
    """
    spans: List[PlaceholderSpan] = []
    for sigil, word in zip(tokens, tokens[1:]):
        if sigil.token_type != TokenType.COLON or word.start != sigil.end + 1:
            continue
        # token offsets are inclusive
        name = template[word.start:word.end + 1]
        if _IDENTIFIER.fullmatch(name) is None:
            continue
        spans.append(PlaceholderSpan(name, sigil.start, word.end + 1))
    return spans


def find_placeholders(template: str, dialect: str = "") -> List[PlaceholderSpan]:
    """Scan a template for ``:name`` placeholders, in occurrence order.

    A sigil not followed by an identifier is plain text.
    """
    return placeholder_spans(template, tokenize_template(template, dialect))


class StatementCompiler:
    """Compiles query templates for one dialect."""

    def __init__(self, helper: DriverHelper):
        """Initialize compiler.

        Args:
            helper: Driver helper supplying marker syntax and tokenizer dialect
        """
        self.helper = helper

    def compile(self, template: str, require_select: bool = True) -> CompiledStatement:
        """Compile a template into its prepared and literal renderings.

        Args:
            template: Query text with ``:name`` placeholders
            require_select: Reject anything that is not a SELECT

        Returns:
            Compiled statement

        Raises:
            CompilationError: on unterminated strings/comments or multiple statements
            UnsupportedStatementKindError: on a non-select template when required
        """
        if template is None:
            raise CompilationError("Query template is missing")

        tokens = tokenize_template(template, self.helper.sqlglot_dialect)
        self._check_single_statement(tokens)
        kind = self._classify(tokens)
        if require_select and kind != StatementKind.SELECT:
            raise UnsupportedStatementKindError(kind.value)

        spans = placeholder_spans(template, tokens)
        prepared_sql = self._build_prepared_sql(template, spans)
        logger.debug(
            f"Compiled {kind.value} statement with {len(spans)} placeholder(s) "
            f"for {self.helper.name}"
        )
        return CompiledStatement(
            template=template,
            kind=kind,
            spans=tuple(spans),
            prepared_sql=prepared_sql,
            helper=self.helper,
        )

    def _check_single_statement(self, tokens: List[Token]) -> None:
        seen_terminator = False
        for token in tokens:
            if token.token_type == TokenType.SEMICOLON:
                seen_terminator = True
            elif seen_terminator:
                raise CompilationError(
                    "Query template holds more than one statement"
                )

    def _classify(self, tokens: List[Token]) -> StatementKind:
        leading = self._leading_keyword(tokens)
        if leading is None:
            return StatementKind.EMPTY
        keyword, position = leading
        if keyword == "WITH":
            return self._classify_cte_body(tokens, position + 1)
        return _KIND_BY_KEYWORD.get(keyword, StatementKind.OTHER)

    def _leading_keyword(self, tokens: List[Token]) -> Optional[Tuple[str, int]]:
        for position, token in enumerate(tokens):
            if token.token_type == TokenType.L_PAREN:
                continue
            if token.token_type == TokenType.SEMICOLON:
                return None
            if token.token_type in _LITERAL_TOKENS:
                return "", position
            return token.text.upper(), position
        return None

    def _classify_cte_body(self, tokens: List[Token], start: int) -> StatementKind:
        depth = 0
        for token in tokens[start:]:
            if token.token_type == TokenType.L_PAREN:
                depth += 1
            elif token.token_type == TokenType.R_PAREN:
                depth -= 1
            elif depth == 0 and token.token_type not in _LITERAL_TOKENS:
                keyword = token.text.upper()
                if keyword in _CTE_BODY_KEYWORDS:
                    return _KIND_BY_KEYWORD[keyword]
        return StatementKind.OTHER

    def _build_prepared_sql(self, template: str, spans: List[PlaceholderSpan]) -> str:
        parts: List[str] = []
        cursor = 0
        for position, span in enumerate(spans, start=1):
            parts.append(self.helper.escape_prepared_text(template[cursor:span.start]))
            parts.append(self.helper.marker(position))
            cursor = span.end
        parts.append(self.helper.escape_prepared_text(template[cursor:]))
        return "".join(parts)


def compile_statement(
    template: str, helper: DriverHelper, require_select: bool = True
) -> CompiledStatement:
    """Compile ``template`` for ``helper``'s dialect."""
    return StatementCompiler(helper).compile(template, require_select=require_select)
