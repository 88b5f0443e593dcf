# avicontrol/config/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def build_engine(database_url: str, echo: bool = False):
    """Crear engine; SQLite necesita check_same_thread desactivado"""
    engine_kwargs = {"echo": echo}

    if database_url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url:
            engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs["pool_pre_ping"] = True
        engine_kwargs["pool_recycle"] = 300

    return create_engine(database_url, **engine_kwargs)


def build_session_factory(engine):
    """Session factory ligada al engine"""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
