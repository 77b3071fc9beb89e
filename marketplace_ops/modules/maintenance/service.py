"""
Schema maintenance through the project's SQL function.

PostgREST cannot run DDL, so the Supabase project exposes a SECURITY DEFINER
function (exec_sql by default) that executes the text it is given. Whether it
exists, and what it may touch, depends on the environment.
"""

from typing import Any, Callable, Iterable, List, Optional
import logging
import re
import time

from marketplace_ops.config import settings
from marketplace_ops.core.exceptions import RemoteRequestError
from marketplace_ops.core.results import BatchResult
from marketplace_ops.database.data_access import DataAccessClient

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_COLUMN_TYPE = re.compile(r"^[A-Za-z][A-Za-z0-9_ ]*(\(\d+(,\s*\d+)?\))?(\[\])?$")
_DOLLAR_TAG = re.compile(r"\$(?:[A-Za-z_][A-Za-z0-9_]*)?\$")


def split_statements(script: str) -> List[str]:
    """Split a SQL script on top-level semicolons.

    Semicolons inside quoted strings, quoted identifiers, dollar-quoted bodies
    ($$ ... $$, $fn$ ... $fn$) and comments do not end a statement.
    """
    statements: List[str] = []
    current: List[str] = []
    i, n = 0, len(script)
    while i < n:
        ch = script[i]
        if ch in ("'", '"'):
            end = script.find(ch, i + 1)
            while end != -1 and script[end + 1:end + 2] == ch:
                end = script.find(ch, end + 2)
            end = n if end == -1 else end + 1
        elif ch == "$" and _DOLLAR_TAG.match(script, i):
            tag = _DOLLAR_TAG.match(script, i).group(0)
            end = script.find(tag, i + len(tag))
            end = n if end == -1 else end + len(tag)
        elif script.startswith("--", i):
            end = script.find("\n", i)
            end = n if end == -1 else end + 1
        elif script.startswith("/*", i):
            end = script.find("*/", i + 2)
            end = n if end == -1 else end + 2
        elif ch == ";":
            statements.append("".join(current))
            current = []
            i += 1
            continue
        else:
            end = i + 1
        current.append(script[i:end])
        i = end
    statements.append("".join(current))
    return [s.strip() for s in statements if s.strip()]


def _check_identifier(kind: str, value: str) -> str:
    if not _IDENTIFIER.match(value or ""):
        raise ValueError(f"Invalid {kind}: {value!r}")
    return value


class SqlMaintenanceService:
    def __init__(
        self,
        db: DataAccessClient,
        sleep: Callable[[float], None] = time.sleep,
        rpc_function: Optional[str] = None,
    ):
        self.db = db
        self.sleep = sleep
        self.rpc_function = rpc_function or settings.sql_rpc_function

    def execute_sql(self, sql: str) -> Any:
        logger.info(f"Executing SQL through {self.rpc_function}: {sql.strip()[:80]}")
        return self.db.call_remote_procedure(self.rpc_function, {"sql": sql})

    def run_statements(self, statements: Iterable[str], pause: Optional[float] = None) -> BatchResult:
        """Run statements one at a time; a failing statement does not stop the rest"""
        pause = settings.statement_delay_seconds if pause is None else pause
        batch = BatchResult(operation="run_statements")
        pending = [s.strip() for s in statements if s and s.strip()]
        for index, statement in enumerate(pending, start=1):
            key = f"{index}/{len(pending)}"
            try:
                self.execute_sql(statement)
            except RemoteRequestError as e:
                logger.error(f"Statement {key} failed: {e.cause}")
                batch.record_failure(key, e.cause)
            else:
                batch.record_success(key, statement.splitlines()[0][:80])
            if index < len(pending):
                self.sleep(pause)
        return batch

    def add_column_if_missing(self, table: str, column: str, column_type: str) -> Any:
        _check_identifier("table name", table)
        _check_identifier("column name", column)
        if not _COLUMN_TYPE.match(column_type or ""):
            raise ValueError(f"Invalid column type: {column_type!r}")
        return self.execute_sql(
            f"ALTER TABLE {table} ADD COLUMN IF NOT EXISTS {column} {column_type};"
        )
