import logging
from contextlib import asynccontextmanager, contextmanager
from typing import Any, AsyncIterator, Iterable, List, Optional

from fastapi import Request
from psycopg import AsyncConnection, DatabaseError, DataError, IntegrityError, InterfaceError, OperationalError
from psycopg import errors as pg_errors
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from .config import Settings
from .errors import AppError, ConstraintViolation, DuplicateKey, StoreUnavailable, ValidationError

log = logging.getLogger(__name__)

Params = Iterable[Any] | dict | None


def _connection_kwargs(settings: Settings) -> dict:
    """Build connection kwargs for psycopg"""
    kwargs = {}

    if settings.postgres_ssl is False:
        kwargs["sslmode"] = "disable"
    else:
        kwargs["sslmode"] = "require"

    # Cloud Run needs a bounded connect
    kwargs["connect_timeout"] = 10
    kwargs["application_name"] = "solar_epc_backend"
    return kwargs


def _mask(conninfo: str) -> str:
    try:
        return conninfo.split("@")[0].rsplit(":", 1)[0] + ":****@" + conninfo.split("@")[1]
    except IndexError:
        return "postgresql://****"


def _diagnose(error_msg: str) -> Optional[str]:
    lowered = error_msg.lower()
    if "timeout" in lowered:
        return "connection timeout: instance down, wrong CLOUD_SQL_CONNECTION_NAME or a firewall in the way"
    if "password" in lowered or "authentication" in lowered:
        return "authentication failed: check POSTGRES_USER / POSTGRES_PASSWORD"
    if "database" in lowered and "does not exist" in lowered:
        return "database not found: check POSTGRES_DB"
    if "connection refused" in lowered:
        return "connection refused: check POSTGRES_HOST / POSTGRES_PORT"
    return None


def _constraint_message(exc: DatabaseError, fallback: str) -> str:
    diag = getattr(exc, "diag", None)
    detail = getattr(diag, "message_detail", None) if diag else None
    return detail or fallback


@contextmanager
def translate_errors():
    """Re-raise psycopg failures as application errors."""
    try:
        yield
    except pg_errors.UniqueViolation as exc:
        raise DuplicateKey(_constraint_message(exc, "Duplicate key")) from exc
    except IntegrityError as exc:
        raise ConstraintViolation(_constraint_message(exc, "Constraint violation")) from exc
    except DataError as exc:
        raise ValidationError(str(exc).strip() or "Invalid value") from exc
    except (OperationalError, InterfaceError) as exc:
        raise StoreUnavailable() from exc
    except DatabaseError as exc:
        raise AppError("Database error") from exc


class Session:
    """Query helpers bound to one pooled connection."""

    def __init__(self, conn: AsyncConnection):
        self.conn = conn

    async def fetch(self, query: str, params: Params = None) -> List[dict]:
        with translate_errors():
            async with self.conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(query, params or None)
                rows = await cur.fetchall()
                return [dict(r) for r in rows]

    async def fetchrow(self, query: str, params: Params = None) -> Optional[dict]:
        with translate_errors():
            async with self.conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(query, params or None)
                row = await cur.fetchone()
                return dict(row) if row else None

    async def execute(self, query: str, params: Params = None) -> int:
        with translate_errors():
            async with self.conn.cursor() as cur:
                await cur.execute(query, params or None)
                return cur.rowcount


class Database:
    """
    Explicitly constructed store handle.

    Created and opened in the application lifespan, closed at shutdown and
    handed to request handlers through the ``get_db`` dependency.
    """

    def __init__(
        self,
        conninfo: str,
        *,
        min_size: int = 1,
        max_size: int = 10,
        timeout: float = 30,
        kwargs: Optional[dict] = None,
    ):
        self.conninfo = conninfo
        self.pool = AsyncConnectionPool(
            conninfo=conninfo,
            open=False,
            kwargs=kwargs or {},
            min_size=min_size,
            max_size=max_size,
            timeout=timeout,
            max_idle=300,
            max_lifetime=3600,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        conninfo = settings.build_db_url()
        if not conninfo:
            raise RuntimeError(
                "Database configuration is missing. "
                "Set DATABASE_URL or POSTGRES_* environment variables."
            )
        return cls(
            conninfo,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            timeout=settings.db_pool_timeout,
            kwargs=_connection_kwargs(settings),
        )

    async def open(self):
        log.info("Opening database pool: %s", _mask(self.conninfo))
        try:
            await self.pool.open(wait=True, timeout=30)
            async with self.pool.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute("SELECT version()")
                    version = await cur.fetchone()
                    log.info("Connected to: %s", version[0][:80])
        except OperationalError as exc:
            hint = _diagnose(str(exc))
            log.error("Database connection error: %s", exc)
            if hint:
                log.error("Diagnosis: %s", hint)
            raise
        except DatabaseError:
            log.exception("Database error while opening the pool")
            raise

    async def close(self):
        log.info("Closing database pool")
        await self.pool.close()

    async def fetch(self, query: str, params: Params = None) -> List[dict]:
        """Execute a SELECT query and return all rows as dictionaries"""
        with translate_errors():
            async with self.pool.connection() as conn:
                return await Session(conn).fetch(query, params)

    async def fetchrow(self, query: str, params: Params = None) -> Optional[dict]:
        """Execute a query and return a single row as a dictionary"""
        with translate_errors():
            async with self.pool.connection() as conn:
                row = await Session(conn).fetchrow(query, params)
                await conn.commit()
                return row

    async def execute(self, query: str, params: Params = None) -> int:
        """Execute an INSERT/UPDATE/DELETE query and return affected row count"""
        with translate_errors():
            async with self.pool.connection() as conn:
                count = await Session(conn).execute(query, params)
                await conn.commit()
                return count

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Session]:
        """
        Scoped transaction: commits when the block exits normally, rolls back
        on any exception raised inside it.
        """
        with translate_errors():
            async with self.pool.connection() as conn:
                async with conn.transaction():
                    yield Session(conn)


def get_db(request: Request) -> Database:
    return request.app.state.db
