# backend/database.py
import enum
import logging
import re
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base

from utils.errors import BUSINESS_RULE_ERROR_NUMBER, BusinessRuleViolation, DatabaseError

logger = logging.getLogger(__name__)

Base = declarative_base()

_PARAM_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# pyodbc: "[42000] [Microsoft][ODBC Driver 18 for SQL Server][SQL Server]Message (51000) (SQLExecDirectW)"
_ODBC_MESSAGE = re.compile(
    r"\[SQL Server\](?P<message>.*?)\s*\((?P<number>\d+)\)\s*(?:\(SQL\w+\))?\s*(?:;|$)",
    re.DOTALL,
)


class ExpectedReturn(str, enum.Enum):
    SINGLE = "single"
    MULTI = "multi"
    NONE = "none"


def parse_db_error(exc: BaseException) -> Tuple[Optional[int], str]:
    """Extract the SQL Server error number and the plain message from a DBAPI error."""
    args = getattr(exc, "args", ()) or ()

    # pymssql style: (number, b"message")
    if len(args) >= 2 and isinstance(args[0], int):
        raw = args[1]
        message = raw.decode("utf-8", "replace") if isinstance(raw, bytes) else str(raw)
        return args[0], message.split("DB-Lib error")[0].strip()

    for arg in reversed(args):
        if not isinstance(arg, str):
            continue
        match = _ODBC_MESSAGE.search(arg)
        if match:
            return int(match.group("number")), match.group("message").strip()

    return None, str(exc)


def translate_db_error(exc: BaseException) -> Exception:
    number, message = parse_db_error(exc)
    if number == BUSINESS_RULE_ERROR_NUMBER:
        return BusinessRuleViolation(message, number)
    return DatabaseError(message, number)


def build_exec_statement(routine: str, parameters: Dict[str, Any]) -> Tuple[str, Tuple[Any, ...]]:
    for name in parameters:
        if not _PARAM_NAME.match(name):
            raise ValueError(f"Invalid stored procedure parameter name: {name!r}")
    if not parameters:
        return f"SET NOCOUNT ON; EXEC {routine}", ()
    assignments = ", ".join(f"@{name} = ?" for name in parameters)
    return f"SET NOCOUNT ON; EXEC {routine} {assignments}", tuple(parameters.values())


def _fetch_result_sets(cursor) -> List[List[Dict[str, Any]]]:
    result_sets = []
    while True:
        if cursor.description is not None:
            columns = [column[0] for column in cursor.description]
            result_sets.append([dict(zip(columns, row)) for row in cursor.fetchall()])
        if not cursor.nextset():
            break
    return result_sets


class ProcedureClient:
    """Calls stored procedures on one pooled connection."""

    def __init__(self, connection: Connection):
        self.connection = connection

    def execute(
        self,
        routine: str,
        parameters: Dict[str, Any],
        expected_return: ExpectedReturn = ExpectedReturn.SINGLE,
    ) -> Any:
        statement, values = build_exec_statement(routine, parameters)
        dbapi_error = self.connection.dialect.loaded_dbapi.Error
        raw = self.connection.connection

        logger.debug("Calling %s", routine)
        cursor = raw.cursor()
        try:
            cursor.execute(statement, values)
            result_sets = _fetch_result_sets(cursor)
            raw.commit()
        except dbapi_error as exc:
            raw.rollback()
            error = translate_db_error(exc)
            if isinstance(error, BusinessRuleViolation):
                logger.info("%s rejected: %s", routine, error.message)
            else:
                logger.error("%s failed: %s", routine, exc)
            raise error from exc
        finally:
            cursor.close()

        if expected_return == ExpectedReturn.NONE:
            return None
        if expected_return == ExpectedReturn.SINGLE:
            if result_sets and result_sets[0]:
                return result_sets[0][0]
            return None
        return result_sets


class Database:
    """Owns the engine and its connection pool for the lifetime of the app."""

    def __init__(self, engine: Engine):
        self.engine = engine

    @classmethod
    def from_settings(cls, settings) -> "Database":
        engine = create_engine(settings.database_url(), pool_pre_ping=True)
        return cls(engine)

    @contextmanager
    def connect(self) -> Iterator[ProcedureClient]:
        with self.engine.connect() as connection:
            yield ProcedureClient(connection)

    def ping(self) -> bool:
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning("Database ping failed: %s", e)
            return False

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request):
    database: Optional[Database] = getattr(request.app.state, "database", None)
    if database is None:
        raise DatabaseError("Database is not initialized")
    with database.connect() as db:
        yield db
