from datetime import datetime, timezone

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool


Base = declarative_base()


def build_engine(database_url: str, echo: bool = False) -> Engine:
    if database_url.startswith('sqlite'):
        options = {'connect_args': {'check_same_thread': False}}
        if ':memory:' in database_url or database_url.rstrip('/') == 'sqlite:':
            options['poolclass'] = StaticPool
        return create_engine(database_url, echo=echo, **options)

    return create_engine(database_url, echo=echo, pool_pre_ping=True)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


def ping(engine: Engine) -> None:
    with engine.connect() as connection:
        connection.execute(text('SELECT 1'))


def init_schema(engine: Engine) -> None:
    # Registers every table on Base.metadata before create_all.
    from lifesure.models import application, blog, claim, payment, policy, review, user  # noqa: F401

    ping(engine)
    Base.metadata.create_all(bind=engine)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
