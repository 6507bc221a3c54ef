"""Equipment inventory services and list filtering."""

from django.db.models import Q

from ..models import Equipment, Loan
from .evidence import EvidenceURLResolver

EQUIPMENT_FIELDS = ("type", "serial_number", "model", "status")


def create_equipment(
    type: str, serial_number: str, model: str, status: str | None = None
) -> Equipment:
    """Register equipment, applying the default status for its type."""
    equipment = Equipment(
        type=type,
        serial_number=serial_number.strip(),
        model=model.strip(),
        status=status or Equipment.default_status_for(type),
    )
    equipment.full_clean()
    equipment.save()
    return equipment


def update_equipment(equipment: Equipment, **fields) -> Equipment:
    """Edit equipment. A blank status falls back to the type default."""
    unknown = set(fields) - set(EQUIPMENT_FIELDS)
    if unknown:
        raise ValueError(
            f"Cannot edit equipment field(s): {', '.join(sorted(unknown))}."
        )
    for name, value in fields.items():
        setattr(equipment, name, value)
    if "status" in fields and not fields["status"]:
        equipment.status = Equipment.default_status_for(equipment.type)
    equipment.full_clean()
    equipment.save()
    return equipment


def available_equipment():
    return Equipment.objects.filter(status="available")


def search_equipment(term: str, queryset=None):
    """Case-insensitive match on model, serial number or type."""
    qs = Equipment.objects.all() if queryset is None else queryset
    term = (term or "").strip()
    if not term:
        return qs
    return qs.filter(
        Q(model__icontains=term)
        | Q(serial_number__icontains=term)
        | Q(type__icontains=term)
    )


def search_loans(term: str, queryset=None):
    """Case-insensitive match on borrower name or department."""
    qs = Loan.objects.with_related() if queryset is None else queryset
    term = (term or "").strip()
    if not term:
        return qs
    return qs.filter(
        Q(borrower_name__icontains=term)
        | Q(borrower_department__icontains=term)
    )


def split_loans(loans):
    """Split loans into (open, history) lists, keeping their order."""
    open_loans, history = [], []
    for loan in loans:
        if loan.status in Loan.OPEN_STATUSES:
            open_loans.append(loan)
        elif loan.status in Loan.CLOSED_STATUSES:
            history.append(loan)
    return open_loans, history


def gallery_urls(equipment: Equipment, resolver=None) -> list[str]:
    """Display links for an equipment item's photographs.

    Each image falls back to its plain storage link when no verified link
    can be obtained.
    """
    resolver = resolver or EvidenceURLResolver()
    urls = []
    for image in equipment.images.all():
        fallback = resolver.storage.public_url(image.image.name)
        urls.append(resolver.refresh(image.image.name, fallback).url)
    return urls
