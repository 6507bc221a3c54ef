"""Loan registration, editing and status services."""

import logging
from datetime import datetime, time

from django.core.exceptions import ValidationError
from django.db import transaction as db_transaction
from django.utils import timezone

from ..models import Equipment, Loan
from .dates import (
    as_calendar_date,
    parse_stored_timestamp,
    to_stored_timestamp,
)
from .evidence import upload_evidence, validate_evidence_file
from .state import validate_transition

logger = logging.getLogger(__name__)

# Equipment status that follows each loan status
EQUIPMENT_STATUS_FOR_LOAN = {
    "active": "loaned",
    "delayed": "loaned",
    "returned": "available",
    "lost": "lost",
    "damaged": "damaged",
}

EDITABLE_FIELDS = (
    "borrower_name",
    "borrower_department",
    "start_date",
    "expected_return_date",
    "accessories",
    "notes",
)

DATE_FIELDS = ("start_date", "expected_return_date")


def _as_timestamp(value):
    if isinstance(value, datetime):
        return parse_stored_timestamp(value)
    return to_stored_timestamp(value)


def _required_timestamp(value, field):
    stored = _as_timestamp(value)
    if stored is None:
        raise ValidationError({field: "This date is required."})
    return stored


def clean_accessories(accessories) -> list[str]:
    """Strip accessory names and drop blanks."""
    return [a.strip() for a in accessories or () if a and a.strip()]


def create_loan(
    equipment: Equipment,
    created_by,
    borrower_name: str,
    borrower_department: str,
    start_date,
    expected_return_date,
    accessories=(),
    notes: str = "",
    evidence_file=None,
) -> Loan:
    """Register a loan of available equipment. Returns the Loan.

    Dates are date-picker text (``yyyy-MM-dd``) or instants already
    normalized by ``to_stored_timestamp``. The equipment becomes
    ``loaned``. When ``evidence_file`` is given it is validated up front and
    uploaded once the loan exists.
    """
    if evidence_file is not None:
        validate_evidence_file(evidence_file)

    stored_start = _required_timestamp(start_date, "start_date")
    stored_expected = _required_timestamp(
        expected_return_date, "expected_return_date"
    )

    with db_transaction.atomic():
        locked = Equipment.objects.select_for_update().get(pk=equipment.pk)
        if not locked.is_available:
            raise ValidationError(
                f"{locked} is not available for loan "
                f"(status: {locked.get_status_display()})."
            )
        loan = Loan(
            equipment=locked,
            created_by=created_by,
            borrower_name=borrower_name.strip(),
            borrower_department=borrower_department.strip(),
            start_date=stored_start,
            expected_return_date=stored_expected,
            accessories=clean_accessories(accessories),
            notes=notes,
            status="active",
        )
        loan.full_clean()
        loan.save()
        locked.status = "loaned"
        locked.save(update_fields=["status", "updated_at"])

    equipment.status = "loaned"
    logger.info(
        "Loan %s registered: %s to %s (%s)",
        loan.pk,
        locked,
        loan.borrower_name,
        loan.borrower_department,
    )

    if evidence_file is not None:
        upload = upload_evidence(loan, evidence_file, uploaded_by=created_by)
        if upload.warning:
            logger.warning("Loan %s: %s", loan.pk, upload.warning)
    return loan


def update_loan(loan: Loan, **fields) -> Loan:
    """Edit a loan's borrower data, dates, accessories or notes.

    Date-picker text is normalized exactly once here; instants coming
    from LoanForm are stored as they are.
    """
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValueError(
            f"Cannot edit loan field(s): {', '.join(sorted(unknown))}."
        )

    for name, value in fields.items():
        if name in DATE_FIELDS:
            value = _required_timestamp(value, name)
        elif name == "accessories":
            value = clean_accessories(value)
        elif name in ("borrower_name", "borrower_department"):
            value = value.strip()
        setattr(loan, name, value)

    loan.full_clean()
    loan.save()
    return loan


def update_loan_status(
    loan: Loan, new_status: str, actual_return_date=None
) -> Loan:
    """Move a loan to a new status and keep its equipment in step.

    ``returned`` stamps the actual return date (now unless given, either as
    date-picker text or as an instant). Raises ValidationError if the
    transition is not allowed.
    """
    validate_transition(loan, new_status)
    if new_status == loan.status:
        return loan

    with db_transaction.atomic():
        loan.status = new_status
        if new_status == "returned":
            loan.actual_return_date = (
                _as_timestamp(actual_return_date) or timezone.now()
            )
        loan.save(
            update_fields=["status", "actual_return_date", "updated_at"]
        )

        equipment = loan.equipment
        equipment.status = EQUIPMENT_STATUS_FOR_LOAN[new_status]
        equipment.save(update_fields=["status", "updated_at"])

    logger.info("Loan %s is now %s", loan.pk, new_status)
    return loan


def mark_overdue_loans(reference_date=None) -> int:
    """Flag active loans due before the reference day as ``delayed``.

    Returns the number of loans updated.
    """
    reference = as_calendar_date(reference_date) or timezone.localdate()
    start_of_day = timezone.make_aware(datetime.combine(reference, time.min))
    updated = Loan.objects.filter(
        status="active", expected_return_date__lt=start_of_day
    ).update(status="delayed", updated_at=timezone.now())
    if updated:
        logger.info("Marked %s loan(s) as delayed", updated)
    return updated
