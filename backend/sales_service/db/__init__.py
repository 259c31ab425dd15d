import importlib
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from sales_service.config import settings

log = logging.getLogger(__name__)

DATABASE_URL = settings.DATABASE_URL

# sqlite connections are handed across the request threadpool (streamed lists)
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, future=True, echo=False, connect_args=connect_args)
SessionLocal = sessionmaker(autoflush=False, bind=engine)
Base = declarative_base()

# every module holding mapped classes; imported before create_all so metadata is complete
MODEL_MODULES = [
    "sales_service.models.customer",
    "sales_service.models.salesman",
    "sales_service.models.order",
    "sales_service.models.sales_return",
    "sales_service.models.document_sequence",
]


def load_models():
    for mod in MODEL_MODULES:
        importlib.import_module(mod)


def init_db(reset: bool = False, bind=None):
    """
    Create the schema on ``bind`` (the application engine by default).

    With ``reset`` (or RESET_DB set in the environment) every table is dropped
    first. Migrations are handled outside this service; this only guarantees
    that a fresh database is usable.
    """
    bind = bind or engine
    load_models()

    if reset or settings.RESET_DB:
        log.warning("Resetting database schema on %s", bind.url)
        Base.metadata.drop_all(bind=bind)

    Base.metadata.create_all(bind=bind)
    log.info("Database initialized (%d tables)", len(Base.metadata.tables))


def get_session_factory():
    return SessionLocal
