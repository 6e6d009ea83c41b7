# app/db.py
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    pass


def make_engine(database_url: str, *, pool_timeout: int = 10) -> Engine:
    """
    Eén engine per proces. SQLite heeft extra connect_args nodig omdat
    FastAPI sync routes in een threadpool draaien.
    """
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": pool_timeout}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # in-memory: alle sessies moeten dezelfde connectie delen
            return create_engine(database_url, connect_args=connect_args, poolclass=StaticPool)
        return create_engine(database_url, connect_args=connect_args)

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_timeout=pool_timeout,
    )


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def create_tables(engine: Engine) -> None:
    from app import models  # noqa: F401  (registreert SQLAlchemy modellen)

    Base.metadata.create_all(bind=engine)
