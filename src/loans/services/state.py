"""Loan state machine and transition validation."""

from django.core.exceptions import ValidationError

from ..models import Loan


def validate_transition(loan: Loan, new_status: str) -> None:
    """Validate and raise if the status transition is not allowed.

    Raises ValidationError if the transition is invalid.
    """
    if new_status == loan.status:
        return  # No-op transition is always fine

    if new_status not in dict(Loan.STATUS_CHOICES):
        raise ValidationError(f"'{new_status}' is not a valid loan status.")

    if not loan.can_transition_to(new_status):
        allowed = Loan.VALID_TRANSITIONS.get(loan.status, [])
        raise ValidationError(
            f"Cannot change a loan from '{loan.get_status_display()}' to "
            f"'{new_status}'. Allowed transitions: "
            f"{', '.join(allowed) or 'none'}."
        )
