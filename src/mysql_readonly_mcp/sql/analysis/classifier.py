"""
Read-only statement classifier using sqlglot.

Decides whether caller-supplied SQL text may reach the executor:
- Lexical gates first (empty text, any ';', configured deny substrings)
- Then a real MySQL grammar parse, admitting only SELECT / UNION / SHOW / EXPLAIN

Any ambiguity (parse error, unknown statement kind) resolves to reject.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional

import sqlglot
from loguru import logger
from sqlglot import exp
from sqlglot.errors import SqlglotError


DIALECT = "mysql"

ADMITTED_KINDS = (exp.Select, exp.Union, exp.Show, exp.Describe)

# EXPLAIN / DESCRIBE / DESC share one grammar in MySQL
_EXPLAIN_RE = re.compile(
    r"^\s*(?:explain|describe|desc)\s+"
    r"(?:(?:analyze|extended|partitions)\s+|format\s*=\s*\w+\s+)?"
    r"(?P<target>.+)$",
    re.IGNORECASE | re.DOTALL,
)
_STATEMENT_START_RE = re.compile(r"^\s*(?:select|with|\()", re.IGNORECASE)


@dataclass(frozen=True)
class AdmissionDecision:
    admitted: bool
    reason: str


def parse_statement(sql: str, dialect: str = DIALECT) -> Optional[exp.Expression]:
    """
    Parse SQL into a single sqlglot AST.

    Args:
        sql: SQL text
        dialect: SQL dialect (default: "mysql")

    Returns:
        The statement's Expression, or None when the text holds zero or
        several statements

    Raises:
        sqlglot.errors.SqlglotError: If SQL is invalid
    """
    statements = [s for s in sqlglot.parse(sql, read=dialect) if s is not None]
    if len(statements) != 1:
        return None
    logger.debug(f"Parsed SQL into AST: {type(statements[0]).__name__}")
    return statements[0]


def _classify_explain(target: str) -> AdmissionDecision:
    # Explaining a query: the explained statement must itself be admissible
    if _STATEMENT_START_RE.match(target):
        stmt = parse_statement(target)
        if isinstance(stmt, (exp.Select, exp.Union)):
            return AdmissionDecision(True, "ok")
        kind = type(stmt).__name__ if stmt is not None else "None"
        return AdmissionDecision(False, f"statement_kind:Describe({kind})")

    # Describing a table: the target must be a bare (optionally qualified) table name
    sqlglot.parse_one(target, read=DIALECT, into=exp.Table)
    return AdmissionDecision(True, "ok")


def classify(query: str, deny_substrings: Iterable[str]) -> AdmissionDecision:
    """
    Classify query text as admitted or rejected, with a reason.

    Args:
        query: Raw, untrusted SQL text
        deny_substrings: Normalized (lower-case) fragments that reject on sight

    Returns:
        AdmissionDecision
    """
    normalized = query.strip().lower()
    if not normalized:
        return AdmissionDecision(False, "empty")

    # Multi-statement batches are never split; any ';' rejects
    if ";" in normalized:
        return AdmissionDecision(False, "multi_statement")

    for fragment in deny_substrings:
        if fragment and fragment in normalized:
            return AdmissionDecision(False, f"deny_substring:{fragment}")

    try:
        explain = _EXPLAIN_RE.match(query)
        if explain:
            return _classify_explain(explain.group("target"))

        stmt = parse_statement(query)
    except SqlglotError as e:
        logger.debug(f"Failed to parse SQL: {e}")
        return AdmissionDecision(False, "parse_error")

    if stmt is None:
        return AdmissionDecision(False, "parse_error")

    # "(SELECT ...)" parses as a wrapped query
    while isinstance(stmt, (exp.Subquery, exp.Paren)):
        stmt = stmt.this

    if isinstance(stmt, ADMITTED_KINDS):
        return AdmissionDecision(True, "ok")

    # SHOW variants sqlglot has no dedicated parser for come back as opaque commands
    if isinstance(stmt, exp.Command) and str(stmt.this).upper() == "SHOW":
        return AdmissionDecision(True, "ok")

    return AdmissionDecision(False, f"statement_kind:{type(stmt).__name__}")


def is_admitted(query: str, deny_substrings: Iterable[str]) -> bool:
    """True if the query text may be executed."""
    return classify(query, deny_substrings).admitted
