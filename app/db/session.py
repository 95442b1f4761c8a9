from sqlalchemy import create_engine, event
from sqlalchemy.pool import QueuePool
from sqlalchemy.orm import sessionmaker, declarative_base
from app.core.config import settings
import logging
import threading
import contextvars

DATABASE_URL = settings.DATABASE_URL

# SQLite connections are shared with the threadpool FastAPI runs sync routes on
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

# pool_pre_ping drops stale MySQL connections before handing them out
engine = create_engine(
    DATABASE_URL,
    connect_args=connect_args,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=True,
    pool_recycle=settings.DB_POOL_RECYCLE,
    poolclass=QueuePool,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

_pool_logger = logging.getLogger("app.db.pool")
_pool_logger.setLevel(getattr(logging, settings.LOG_LEVEL, logging.INFO))
_stats_lock = threading.Lock()
_pool_events = {"connect": 0, "checkout": 0, "checkin": 0}
_queries_total = 0

# Per-request query counter. The request middleware sets a one-item list and
# the cursor listener bumps it in place, so the count survives the context
# copies made for the threadpool.
request_db_query_count = contextvars.ContextVar("request_db_query_count", default=None)


def _count_pool_event(kind: str) -> None:
    with _stats_lock:
        _pool_events[kind] += 1
        total = _pool_events[kind]
    if total % settings.DB_LOG_EVERY_N == 0:
        _pool_logger.info(f"Pool {kind.upper()}: {total} eventos desde o início")


@event.listens_for(engine, "connect")
def _on_connect(dbapi_connection, connection_record):
    _count_pool_event("connect")


@event.listens_for(engine, "checkout")
def _on_checkout(dbapi_connection, connection_record, connection_proxy):
    _count_pool_event("checkout")


@event.listens_for(engine, "checkin")
def _on_checkin(dbapi_connection, connection_record):
    _count_pool_event("checkin")


@event.listens_for(engine, "before_cursor_execute")
def _on_before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    por_requisicao = request_db_query_count.get()
    if por_requisicao is not None:
        por_requisicao[0] += 1
    global _queries_total
    with _stats_lock:
        _queries_total += 1


def db_stats() -> dict:
    """Pool event counters and executed statements since process start."""
    with _stats_lock:
        return {**_pool_events, "queries": _queries_total}


def get_db():
    """FastAPI dependency yielding a Session that is closed after the request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_db():
    """Create missing tables and, when SEED_SERVICES is on, seed the catalog."""
    # registering the models on Base.metadata
    import app.models.client  # noqa: F401
    import app.models.servico  # noqa: F401
    import app.models.product  # noqa: F401
    import app.models.agendamento  # noqa: F401

    Base.metadata.create_all(bind=engine)

    if settings.SEED_SERVICES:
        from app.db.seed import seed_servicos

        db = SessionLocal()
        try:
            inserted = seed_servicos(db)
            if inserted:
                _pool_logger.info("Catálogo de serviços populado: %s serviços", len(inserted))
        finally:
            db.close()
