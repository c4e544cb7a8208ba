# backend/models/migration.py
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.expression import FunctionElement
from database import Base


class utcnow(FunctionElement):
    type = DateTime()
    inherit_cache = True


@compiles(utcnow)
def _utcnow_default(element, compiler, **kw):
    # SQLite keeps CURRENT_TIMESTAMP in UTC
    return "CURRENT_TIMESTAMP"


@compiles(utcnow, "mssql")
def _utcnow_mssql(element, compiler, **kw):
    return "GETUTCDATE()"


# Bookkeeping row written once for every migration file that ran to completion
class Migration(Base):
    __tablename__ = "migrations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    filename = Column(String(255), unique=True, nullable=False)
    executed_at = Column(DateTime, server_default=utcnow(), nullable=False)

    # SHA-256 of the file content, hex encoded
    checksum = Column(String(64), nullable=False)
