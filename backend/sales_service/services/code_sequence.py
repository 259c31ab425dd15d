import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from sales_service.models.document_sequence import DocumentSequence
from sales_service.utils.dates import month_bounds, utcnow

log = logging.getLogger(__name__)


def format_code(prefix: str, moment: datetime, number: int) -> str:
    # year, month and sequence are concatenated unpadded: DO2024107
    return f"{prefix}{moment.year}{moment.month}{number}"


def next_code(db: Session, tenant_id: str, prefix: str, model, now: Optional[datetime] = None) -> str:
    """
    Allocate the next document code for ``tenant_id`` in the current month.

    Must run inside the caller's write transaction. The counter row is read
    FOR UPDATE; a missing row is seeded with the number of ``model`` rows
    the tenant already created this month. Two writers seeding the same
    row at once collide on its unique key; the caller retries.
    """
    now = now or utcnow()
    period = f"{now.year:04d}{now.month:02d}"

    seq = (
        db.query(DocumentSequence)
        .filter(
            DocumentSequence.tenant_id == tenant_id,
            DocumentSequence.prefix == prefix,
            DocumentSequence.period == period,
        )
        .with_for_update()
        .first()
    )
    if seq is None:
        start, end = month_bounds(now)
        existing = (
            db.query(func.count(model.id))
            .filter(model.tenant_id == tenant_id, model.created_at >= start, model.created_at < end)
            .scalar()
            or 0
        )
        seq = DocumentSequence(tenant_id=tenant_id, prefix=prefix, period=period, current_number=existing)
        db.add(seq)
        db.flush()

    seq.current_number += 1
    db.flush()
    code = format_code(prefix, now, seq.current_number)
    log.debug("allocated code %s for tenant=%s", code, tenant_id)
    return code
