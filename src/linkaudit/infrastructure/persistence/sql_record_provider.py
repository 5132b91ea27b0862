"""SQL-backed record provider (Moodle ``mdl_url`` table by default)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import column, create_engine, select, table
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from linkaudit.domain.entities import ProviderConnectionError, RawLinkRow

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine

log = structlog.get_logger(__name__)


def build_database_url(
    *,
    driver: str,
    host: str | None,
    database: str | None,
    username: str | None,
    password: str | None,
    port: int | None = None,
) -> URL:
    """Assemble a SQLAlchemy URL from discrete connection parameters."""
    return URL.create(
        drivername=driver,
        username=username or None,
        password=password or None,
        host=host or None,
        port=port,
        database=database or None,
    )


class SqlRecordProvider:
    """Reads link rows with a single ``SELECT`` through SQLAlchemy.

    The connection is opened in ``__enter__`` and always released in
    ``__exit__``; nothing is kept once the provider is closed.

    Args:
        url: SQLAlchemy database URL (``mysql+pymysql://...``).
        table_name: Table holding the links.
        id_column / owner_column / name_column / url_column: Column names
            mapped onto ``(id, owner_id, name, raw_url)``.
    """

    def __init__(
        self,
        url: str | URL,
        *,
        table_name: str = "mdl_url",
        id_column: str = "id",
        owner_column: str = "course",
        name_column: str = "name",
        url_column: str = "externalurl",
    ) -> None:
        self.url = url
        self.table_name = table_name
        self.id_column = id_column
        self.owner_column = owner_column
        self.name_column = name_column
        self.url_column = url_column
        self._engine: Engine | None = None
        self._connection: Connection | None = None

    def __enter__(self) -> SqlRecordProvider:
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def open(self) -> None:
        if self._connection is not None:
            return
        try:
            url = make_url(self.url)
        except ArgumentError as e:
            raise ProviderConnectionError(f"invalid database url: {e}") from e

        log.info(
            "database_connecting",
            driver=url.drivername,
            host=url.host,
            database=url.database,
            username=url.username,
        )
        try:
            self._engine = create_engine(url)
            self._connection = self._engine.connect()
        except (SQLAlchemyError, ImportError) as e:
            self._dispose()
            raise ProviderConnectionError(
                f"cannot connect to {url.render_as_string(hide_password=True)}: {e}"
            ) from e
        log.info("database_connected", database=url.database)

    def close(self) -> None:
        if self._connection is not None:
            log.info("database_closing")
        self._dispose()

    def _dispose(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    def fetch_rows(self) -> list[RawLinkRow]:
        if self._connection is None:
            raise ProviderConnectionError("provider is not open")

        links = table(
            self.table_name,
            column(self.id_column),
            column(self.owner_column),
            column(self.name_column),
            column(self.url_column),
        )
        stmt = select(
            links.c[self.id_column],
            links.c[self.owner_column],
            links.c[self.name_column],
            links.c[self.url_column],
        )

        try:
            result = self._connection.execute(stmt)
            rows = [RawLinkRow(*row) for row in result]
        except SQLAlchemyError as e:
            raise ProviderConnectionError(
                f"query on {self.table_name} failed: {e}"
            ) from e

        log.info("records_fetched", table=self.table_name, count=len(rows))
        return rows
