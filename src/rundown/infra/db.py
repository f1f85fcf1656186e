
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.schema import MetaData

from rundown.infra.settings import settings

# Deterministic constraint/index names (prevents Alembic churn)
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


def _connect_args(url: str) -> dict[str, object]:
    if "sqlite" in url:
        return {"check_same_thread": False}
    if "postgresql" in url:
        return {"connect_timeout": settings.connect_timeout}
    return {}


def install_connect_hooks(target: Engine) -> Engine:
    """Per-connection setup: SQLite needs FK enforcement, Postgres a fixed search path."""

    @event.listens_for(target, "connect")
    def _on_connect(dbapi_conn, _):
        cur = dbapi_conn.cursor()
        try:
            if target.dialect.name == "sqlite":
                cur.execute("PRAGMA foreign_keys=ON")
            elif target.dialect.name == "postgresql":
                cur.execute("SET search_path TO public")
        finally:
            cur.close()

    return target


def _pool_kwargs(url: str) -> dict[str, int]:
    if url.startswith("sqlite") and ":memory:" in url:
        return {}
    return {
        "pool_size": settings.pool_size,
        "max_overflow": settings.max_overflow,
        "pool_timeout": settings.pool_timeout,
    }


engine = install_connect_hooks(
    create_engine(
        settings.database_url,
        echo=settings.echo_sql,
        pool_pre_ping=True,
        future=True,
        connect_args=_connect_args(settings.database_url),
        **_pool_kwargs(settings.database_url),
    )
)


SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    future=True,
    expire_on_commit=False,
)


def get_engine(db_url: str | None = None, for_test: bool = False) -> Engine:
    """Get or create a database engine.

    If ``for_test`` is True and ``settings.test_database_url`` is set, that URL is used.
    Otherwise falls back to the provided ``db_url`` or the default ``settings.database_url``.
    Returns the global engine when using the default, to avoid unnecessary engine creation.
    """
    if for_test and settings.test_database_url:
        chosen_url = settings.test_database_url
    else:
        chosen_url = db_url or settings.database_url

    if not db_url and not for_test and chosen_url == settings.database_url:
        return engine

    return install_connect_hooks(
        create_engine(
            chosen_url,
            echo=False,
            pool_pre_ping=True,
            future=True,
            connect_args=_connect_args(chosen_url),
        )
    )


def get_sessionmaker(for_test: bool = False) -> sessionmaker:
    """Get a session factory.

    Returns the global sessionmaker for default usage. When ``for_test`` is True,
    returns a temporary sessionmaker bound to a test engine.
    """
    if not for_test:
        return SessionLocal
    test_engine = get_engine(for_test=True)
    return sessionmaker(
        bind=test_engine, autoflush=False, autocommit=False, future=True, expire_on_commit=False
    )
