import logging
import os
from contextlib import contextmanager
from typing import Iterator

from filelock import FileLock, Timeout
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from sales_service.config import settings
from sales_service.errors import Internal, InvalidArgument

log = logging.getLogger(__name__)


@contextmanager
def write_transaction(session: Session, raise_conflicts: bool = False) -> Iterator[Session]:
    """
    Run the enclosed block as the single local transaction of a write.

    Validation reads done earlier on the same session leave an implicit
    transaction open; it is ended first so the write works on a fresh
    snapshot. The block commits on exit and rolls back on any exception.
    With ``raise_conflicts`` an IntegrityError is re-raised untouched so the
    caller can retry a code collision; otherwise it surfaces as
    InvalidArgument. Other database errors surface as Internal.
    Usage:
        with write_transaction(db):
            ... DB work ...
    """
    if session.in_transaction():
        session.rollback()
    try:
        with session.begin():
            yield session
    except IntegrityError as exc:
        if raise_conflicts:
            raise
        log.warning("transaction rolled back on constraint: %s", exc.orig)
        raise InvalidArgument("Please supply valid data: conflicting record") from exc
    except SQLAlchemyError as exc:
        log.error("transaction rolled back: %s", exc)
        raise Internal(f"failed commit transaction: {exc}") from exc


@contextmanager
def order_write_lock(order_id: str) -> Iterator[None]:
    """
    Serialize writes touching one order across workers and processes.

    Held around return create/update and order update so the outstanding
    quantity read and the commit cannot interleave with another writer.
    Databases that honour SELECT ... FOR UPDATE get the row lock as well;
    this lock covers the ones that don't (sqlite).
    """
    locks_dir = os.path.join(settings.WRITE_LOCK_DIR, "sales_service_locks")
    os.makedirs(locks_dir, exist_ok=True)
    lock = FileLock(os.path.join(locks_dir, f"order_{order_id}.lock"))
    try:
        with lock.acquire(timeout=settings.WRITE_LOCK_TIMEOUT_SECONDS):
            yield
    except Timeout as exc:
        raise Internal("Could not acquire order write lock; try again") from exc
