from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def make_engine(database_url: str, echo: bool = False) -> Engine:
    engine_kwargs = {"echo": echo, "future": True, "pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # A single shared connection, otherwise every checkout sees an empty database
            engine_kwargs["poolclass"] = StaticPool
    elif database_url.startswith("postgresql") and "sslmode=" not in database_url.lower():
        # Supabase and most hosted Postgres instances require SSL
        engine_kwargs["connect_args"] = {"sslmode": "require"}
    return create_engine(database_url, **engine_kwargs)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create tables if they don't exist."""
    # Register mappers before create_all
    from symptomlog.models import kv_record  # noqa: F401

    Base.metadata.create_all(bind=engine)
