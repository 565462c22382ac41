from sqlalchemy import create_engine, Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from order_core.adapters.db.sqlalchemy import models
from order_core.config import Settings

_IN_MEMORY_SQLITE = ("sqlite://", "sqlite:///:memory:", "sqlite+pysqlite://", "sqlite+pysqlite:///:memory:")


def create_db_engine(settings: Settings) -> Engine:
    url = settings.database_url
    kwargs = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}
        # インメモリの場合は全スレッドで同じコネクションを共有しないとテーブルが見えない
        if url in _IN_MEMORY_SQLITE:
            kwargs["poolclass"] = StaticPool
    return create_engine(url, echo=settings.database_echo, **kwargs)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=True, bind=engine)


def create_schema(engine: Engine) -> None:
    models.Base.metadata.create_all(engine)


def drop_schema(engine: Engine) -> None:
    models.Base.metadata.drop_all(engine)
