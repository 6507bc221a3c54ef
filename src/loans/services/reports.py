"""Aggregate counts for the loan reports and dashboard."""

from datetime import datetime, time, timedelta

from django.db.models import Count, Q
from django.db.models.functions import Coalesce
from django.utils import timezone

from ..models import Equipment, Loan
from .dates import as_calendar_date


def _percentage(part, total):
    if not total:
        return 0.0
    return round(part * 100 / total, 1)


def loan_summary() -> dict:
    """Loan totals by status plus the return rate as a percentage."""
    counts = Loan.objects.aggregate(
        total=Coalesce(Count("pk"), 0),
        active=Coalesce(Count("pk", filter=Q(status="active")), 0),
        delayed=Coalesce(Count("pk", filter=Q(status="delayed")), 0),
        returned=Coalesce(Count("pk", filter=Q(status="returned")), 0),
    )
    counts["return_rate"] = _percentage(counts["returned"], counts["total"])
    return counts


def loans_by_department(limit: int = 5) -> list[tuple[str, int]]:
    """The departments with the most loans, busiest first."""
    rows = (
        Loan.objects.values("borrower_department")
        .annotate(loan_count=Count("pk"))
        .order_by("-loan_count", "borrower_department")[:limit]
    )
    return [(row["borrower_department"], row["loan_count"]) for row in rows]


def equipment_status_breakdown() -> dict[str, tuple[int, float]]:
    """Map each equipment status to ``(count, percentage of all)``."""
    rows = Equipment.objects.values("status").annotate(count=Count("pk"))
    counts = {row["status"]: row["count"] for row in rows}
    total = sum(counts.values())
    breakdown = {}
    for status, _label in Equipment.STATUS_CHOICES:
        count = counts.get(status, 0)
        breakdown[status] = (count, _percentage(count, total))
    return breakdown


def equipment_by_type() -> dict[str, int]:
    rows = Equipment.objects.values("type").annotate(count=Count("pk"))
    counts = {row["type"]: row["count"] for row in rows}
    return {
        kind: counts.get(kind, 0) for kind, _label in Equipment.TYPE_CHOICES
    }


def dashboard_counts(today=None) -> dict:
    """Headline numbers for the dashboard.

    ``returned_today`` counts loans whose actual return falls on the local
    calendar day ``today`` (default: the current day).
    """
    day = as_calendar_date(today) or timezone.localdate()
    day_start = timezone.make_aware(datetime.combine(day, time.min))
    day_end = timezone.make_aware(
        datetime.combine(day + timedelta(days=1), time.min)
    )
    loan_counts = Loan.objects.aggregate(
        active_loans=Coalesce(Count("pk", filter=Q(status="active")), 0),
        delayed_loans=Coalesce(Count("pk", filter=Q(status="delayed")), 0),
        returned_today=Coalesce(
            Count(
                "pk",
                filter=Q(
                    status="returned",
                    actual_return_date__gte=day_start,
                    actual_return_date__lt=day_end,
                ),
            ),
            0,
        ),
    )
    loan_counts["available_equipment"] = Equipment.objects.filter(
        status="available"
    ).count()
    return loan_counts
