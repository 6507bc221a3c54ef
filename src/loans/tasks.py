"""Celery tasks for the loans app."""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task
def refresh_evidence_urls(loan_id: int):
    """Recompute the display links of a loan's evidence.

    Links that cannot be verified keep their previous value. Returns the
    number of records whose link changed.
    """
    from .models import Loan
    from .services.evidence import refresh_evidence_urls as refresh

    try:
        loan = Loan.objects.prefetch_related("evidence").get(pk=loan_id)
    except Loan.DoesNotExist:
        logger.warning("Loan %s not found, skipping link refresh", loan_id)
        return 0
    return refresh(loan)


@shared_task
def mark_overdue_loans():
    """Flag active loans past their expected return day as delayed."""
    from .services.loans import mark_overdue_loans as mark

    return mark()
