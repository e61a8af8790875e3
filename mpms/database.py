# mpms/database.py

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite не проверяет внешние ключи без этого PRAGMA (нужно для ON DELETE CASCADE / SET NULL)
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str) -> Engine:
    """
    Создает движок подключения к БД по URL из настроек.
    In-memory SQLite держит одно соединение (StaticPool), иначе каждая сессия видела бы пустую БД.
    """
    kwargs = {"pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url.rstrip("/").endswith(":"):
            kwargs["poolclass"] = StaticPool

    engine = create_engine(database_url, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def build_session_factory(engine: Engine) -> sessionmaker:
    """Фабрика сессий; одна сессия на запрос (см. mpms.dependencies.get_db)."""
    return sessionmaker(
        autoflush=False,
        bind=engine,
        expire_on_commit=False,
    )
