import pytest
from sqlalchemy.exc import IntegrityError

from sales_service.errors import InvalidArgument
from sales_service.models.document_sequence import DocumentSequence
from sales_service.utils.transactions import write_transaction


def _duplicate_counters(db):
    db.add_all(
        [
            DocumentSequence(tenant_id="tenant-1", prefix="DO", period="202405", current_number=1),
            DocumentSequence(tenant_id="tenant-1", prefix="DO", period="202405", current_number=2),
        ]
    )


def test_constraint_violation_is_invalid_argument(db):
    with pytest.raises(InvalidArgument, match="conflicting record"):
        with write_transaction(db):
            _duplicate_counters(db)
    assert db.query(DocumentSequence).count() == 0


def test_conflicts_can_be_handed_to_the_caller(db):
    with pytest.raises(IntegrityError):
        with write_transaction(db, raise_conflicts=True):
            _duplicate_counters(db)
    assert db.query(DocumentSequence).count() == 0


def test_block_commits_on_exit(db):
    with write_transaction(db):
        db.add(DocumentSequence(tenant_id="tenant-1", prefix="DR", period="202405", current_number=3))
    assert db.query(DocumentSequence).one().current_number == 3
