"""
Tests for the schedule entry state machine (Occurrence and Installment).

PENDING -> PAID | SKIPPED; terminal states reject every transition, and
the overdue gate blocks payment but not skipping.
"""

from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from finance_schedule.domain.entries import (
    OVERDUE_THRESHOLD_DAYS,
    Installment,
    Occurrence,
    PayableEntry,
)
from finance_schedule.domain.types import EntryKind, EntryStatus
from finance_schedule.exceptions import (
    AlreadyPaidError,
    AlreadySkippedError,
    InvalidAmountError,
    InvalidEntryStateError,
    MissingTransactionIdError,
    NotPendingError,
    OverdueError,
    ValidationError,
)

AS_OF = date(2024, 3, 1)


def _occurrence(due=date(2024, 3, 1)):
    return Occurrence.create(uuid4(), due)


def _installment(number=1, amount=Decimal("100.00"), due=date(2024, 3, 1)):
    return Installment.create(uuid4(), number, amount, due)


# =============================================================================
# Construction
# =============================================================================


class TestConstruction:
    def test_new_entry_is_pending(self):
        entry = _occurrence()
        assert entry.status is EntryStatus.PENDING
        assert entry.transaction_id is None
        assert entry.kind is EntryKind.OCCURRENCE

    def test_paid_without_transaction_rejected(self):
        with pytest.raises(InvalidEntryStateError):
            Occurrence(
                entry_id=uuid4(), template_id=uuid4(), due_date=AS_OF,
                status=EntryStatus.PAID,
            )

    def test_transaction_without_paid_rejected(self):
        with pytest.raises(InvalidEntryStateError):
            Occurrence(
                entry_id=uuid4(), template_id=uuid4(), due_date=AS_OF,
                status=EntryStatus.SKIPPED, transaction_id=uuid4(),
            )

    def test_status_string_coerced(self):
        entry = Occurrence(
            entry_id=uuid4(), template_id=uuid4(), due_date=AS_OF, status="skipped",
        )
        assert entry.is_skipped()

    def test_installment_number_must_be_positive(self):
        with pytest.raises(ValidationError) as exc:
            _installment(number=0)
        assert exc.value.field == "installment_number"

    def test_installment_amount_must_be_positive(self):
        with pytest.raises(InvalidAmountError):
            _installment(amount=Decimal("0.00"))

    def test_natural_keys(self):
        assert _occurrence(due=date(2024, 2, 15)).natural_key == "2024-02-15"
        assert _installment(number=3).natural_key == "#3"

    def test_no_status_setter(self):
        entry = _occurrence()
        with pytest.raises(AttributeError):
            entry.status = EntryStatus.PAID


# =============================================================================
# pay()
# =============================================================================


class TestPay:
    def test_pay_links_transaction(self):
        entry = _installment()
        txn = uuid4()
        entry.pay(txn, AS_OF)
        assert entry.is_paid()
        assert entry.transaction_id == txn

    def test_pay_twice_raises_already_paid(self):
        entry = _occurrence()
        first = uuid4()
        entry.pay(first, AS_OF)
        with pytest.raises(AlreadyPaidError) as exc:
            entry.pay(uuid4(), AS_OF)
        assert exc.value.transaction_id == first
        assert entry.transaction_id == first

    def test_pay_skipped_raises_already_skipped(self):
        entry = _occurrence()
        entry.skip()
        with pytest.raises(AlreadySkippedError):
            entry.pay(uuid4(), AS_OF)

    def test_pay_without_transaction_id(self):
        entry = _occurrence()
        with pytest.raises(MissingTransactionIdError):
            entry.pay(None, AS_OF)
        assert entry.is_pending()

    def test_pay_future_entry_allowed(self):
        entry = _occurrence(due=date(2024, 12, 1))
        entry.pay(uuid4(), AS_OF)
        assert entry.is_paid()

    def test_pay_overdue_rejected(self):
        entry = _occurrence(due=AS_OF - timedelta(days=31))
        with pytest.raises(OverdueError) as exc:
            entry.pay(uuid4(), AS_OF)
        assert exc.value.threshold_days == OVERDUE_THRESHOLD_DAYS
        assert entry.is_pending()

    def test_pay_at_exact_threshold_allowed(self):
        entry = _occurrence(due=AS_OF - timedelta(days=30))
        entry.pay(uuid4(), AS_OF)
        assert entry.is_paid()

    def test_pay_honors_custom_threshold(self):
        entry = _occurrence(due=AS_OF - timedelta(days=10))
        with pytest.raises(OverdueError):
            entry.pay(uuid4(), AS_OF, threshold_days=7)


# =============================================================================
# skip()
# =============================================================================


class TestSkip:
    def test_skip(self):
        entry = _installment()
        entry.skip()
        assert entry.is_skipped()
        assert entry.transaction_id is None

    def test_skip_overdue_allowed(self):
        entry = _occurrence(due=AS_OF - timedelta(days=90))
        entry.skip()
        assert entry.is_skipped()

    def test_skip_twice_rejected(self):
        entry = _occurrence()
        entry.skip()
        with pytest.raises(AlreadySkippedError):
            entry.skip()

    def test_skip_paid_rejected(self):
        entry = _occurrence()
        entry.pay(uuid4(), AS_OF)
        with pytest.raises(AlreadyPaidError):
            entry.skip()

    def test_not_pending_is_common_base(self):
        entry = _occurrence()
        entry.skip()
        with pytest.raises(NotPendingError):
            entry.skip()


# =============================================================================
# Predicates
# =============================================================================


class TestPredicates:
    def test_overdue_boundary(self):
        assert _occurrence(due=AS_OF - timedelta(days=31)).is_overdue(AS_OF)
        assert not _occurrence(due=AS_OF - timedelta(days=30)).is_overdue(AS_OF)
        assert not _occurrence(due=AS_OF - timedelta(days=29)).is_overdue(AS_OF)

    def test_can_be_paid(self):
        assert _occurrence(due=AS_OF - timedelta(days=29)).can_be_paid(AS_OF)
        assert not _occurrence(due=AS_OF - timedelta(days=31)).can_be_paid(AS_OF)

        paid = _occurrence()
        paid.pay(uuid4(), AS_OF)
        assert not paid.can_be_paid(AS_OF)

    def test_can_be_skipped(self):
        entry = _occurrence()
        assert entry.can_be_skipped()
        entry.skip()
        assert not entry.can_be_skipped()

    def test_is_due(self):
        assert _occurrence(due=AS_OF).is_due(AS_OF)
        assert not _occurrence(due=AS_OF + timedelta(days=1)).is_due(AS_OF)

    def test_ensure_payable_reports_specific_reason(self):
        entry = _occurrence(due=AS_OF - timedelta(days=45))
        entry.skip()
        # Terminal state wins over overdue
        with pytest.raises(AlreadySkippedError):
            entry.ensure_payable(AS_OF)


# =============================================================================
# Identity
# =============================================================================


class TestIdentity:
    def test_equality_by_kind_and_id(self):
        entry_id = uuid4()
        template_id = uuid4()
        a = Occurrence(entry_id=entry_id, template_id=template_id, due_date=AS_OF)
        b = Occurrence(entry_id=entry_id, template_id=template_id, due_date=AS_OF)
        assert a == b
        assert hash(a) == hash(b)

    def test_different_kinds_not_equal(self):
        entry_id = uuid4()
        occurrence = Occurrence(entry_id=entry_id, template_id=uuid4(), due_date=AS_OF)
        installment = Installment(
            entry_id=entry_id, template_id=uuid4(), due_date=AS_OF,
            installment_number=1, amount=Decimal("1.00"),
        )
        assert occurrence != installment

    def test_repr(self):
        assert "pending" in repr(_occurrence())

    def test_base_entry_is_abstract(self):
        with pytest.raises(TypeError):
            PayableEntry(entry_id=uuid4(), template_id=uuid4(), due_date=AS_OF)
