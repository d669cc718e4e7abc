"""SQL tool bound to the chat client.

Exposes a single ``query`` tool that the model can call to run read-only
SQL against the configured database.  Pure logic, no FastAPI imports.

No connection pool is kept: the engine uses ``NullPool`` so every tool call
opens and closes its own connection.
"""

import json
import logging
import re
from threading import Lock

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

logger = logging.getLogger(__name__)

QUERY_TOOL_NAME = "query"

_READ_ONLY_KEYWORDS = ("SELECT", "WITH", "EXPLAIN", "SHOW", "VALUES")

# Quoted literals, quoted identifiers and comments, scanned left to right so a
# comment marker inside a string is not treated as a comment.
_MASK_RE = re.compile(
    r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"|--[^\n]*|/\*.*?\*/",
    re.DOTALL,
)

_LEADING_KEYWORD_RE = re.compile(r"[\s(]*([A-Za-z]+)")

_QUERY_TOOL_DEFINITION = {
    "type": "function",
    "function": {
        "name": QUERY_TOOL_NAME,
        "description": (
            "Run a read-only SQL query against the database and return "
            "the resulting rows as a JSON array of objects."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "sql": {
                    "type": "string",
                    "description": "A single read-only SQL statement.",
                },
            },
            "required": ["sql"],
        },
    },
}


class ToolError(Exception):
    """Raised when a tool call cannot be executed."""


# ------------------------------------------------------------------
# Statement guard
# ------------------------------------------------------------------


def _strip_trailing_semicolon(sql: str) -> str:
    sql = sql.strip()
    if sql.endswith(";"):
        sql = sql[:-1].rstrip()
    return sql


def _mask_token(match: re.Match) -> str:
    token = match.group(0)
    if token.startswith(("--", "/*")):
        return " "
    return token[0] * 2


def _mask_sql(sql: str) -> str:
    """Drop comments and empty out quoted text, keeping the statement shape."""
    return _MASK_RE.sub(_mask_token, sql)


def ensure_read_only(sql: str) -> None:
    """Reject anything that is not a single read-only statement.

    Comments and the contents of quoted strings are ignored when looking at
    the statement.  This is a coarse filter; on PostgreSQL the statement also
    runs in a read-only transaction.
    """
    cleaned = _strip_trailing_semicolon(_mask_sql(sql))
    if not cleaned:
        raise ToolError("SQL statement is empty.")
    if ";" in cleaned:
        raise ToolError("Only a single SQL statement is allowed.")

    match = _LEADING_KEYWORD_RE.match(cleaned)
    keyword = match.group(1).upper() if match else cleaned.split(None, 1)[0]
    if keyword not in _READ_ONLY_KEYWORDS:
        raise ToolError(
            f"Only read-only statements are allowed (got {keyword})."
        )


def _parse_arguments(arguments: str | dict) -> str:
    if isinstance(arguments, str):
        try:
            arguments = json.loads(arguments or "{}")
        except json.JSONDecodeError as exc:
            raise ToolError(f"Tool arguments are not valid JSON: {exc}") from exc

    if not isinstance(arguments, dict):
        raise ToolError("Tool arguments must be a JSON object.")

    sql = arguments.get("sql")
    if not isinstance(sql, str) or not sql.strip():
        raise ToolError("Missing required argument 'sql'.")
    return sql


# ------------------------------------------------------------------
# Provider
# ------------------------------------------------------------------


class SqlToolProvider:
    """Binds the ``query`` tool to a database URL."""

    def __init__(self, database_url: str, row_limit: int = 200) -> None:
        self.database_url = database_url
        self.row_limit = row_limit
        self._engine: Engine | None = None
        self._engine_lock = Lock()

    def definitions(self) -> list[dict]:
        """Tool definitions in the chat-completions ``tools`` format."""
        return [_QUERY_TOOL_DEFINITION]

    def execute(self, name: str, arguments: str | dict) -> str:
        """Run a tool call and return its result as a JSON string."""
        if name != QUERY_TOOL_NAME:
            raise ToolError(f"Unknown tool: {name}")

        sql = _parse_arguments(arguments)
        ensure_read_only(sql)
        rows = self._run_query(_strip_trailing_semicolon(sql))
        logger.debug("Tool '%s' returned %d row(s)", name, len(rows))
        return json.dumps(rows, default=str)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get_engine(self) -> Engine:
        if not self.database_url:
            raise ToolError(
                "No database is configured. Set DATABASE_URL in your .env file."
            )
        with self._engine_lock:
            if self._engine is None:
                try:
                    self._engine = create_engine(self.database_url, poolclass=NullPool)
                except (SQLAlchemyError, ImportError) as exc:
                    raise ToolError(f"Invalid DATABASE_URL: {exc}") from exc
            return self._engine

    def _run_query(self, sql: str) -> list[dict]:
        try:
            engine = self._get_engine()
            with engine.connect() as conn:
                trans = conn.begin()
                try:
                    if conn.dialect.name == "postgresql":
                        conn.execute(text("SET TRANSACTION READ ONLY"))
                    result = conn.execute(text(sql))
                    if not result.returns_rows:
                        return []
                    columns = list(result.keys())
                    return [
                        dict(zip(columns, row))
                        for row in result.fetchmany(self.row_limit)
                    ]
                finally:
                    trans.rollback()
        except SQLAlchemyError as exc:
            raise ToolError(f"Query failed: {exc}") from exc
