"""Models for equipment loan tracking."""

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from loantrack.storage import get_evidence_storage


class Equipment(models.Model):
    """An IT asset that can be lent out."""

    TYPE_CHOICES = [
        ("laptop", "Portátil"),
        ("printer", "Impresora"),
        ("desktop", "Escritorio"),
    ]

    STATUS_CHOICES = [
        ("available", "Disponible"),
        ("loaned", "En préstamo"),
        ("maintenance", "Mantenimiento"),
        ("lost", "Extraviado"),
        ("damaged", "Dañado"),
        ("inactive", "Inactivo"),
        ("unavailable", "No disponible"),
    ]

    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    serial_number = models.CharField(max_length=100, unique=True)
    model = models.CharField(max_length=200)
    status = models.CharField(
        max_length=20, choices=STATUS_CHOICES, default="available"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "equipment"
        indexes = [
            models.Index(fields=["status"], name="idx_equipment_status"),
            models.Index(fields=["type"], name="idx_equipment_type"),
        ]

    def __str__(self):
        return f"{self.model} ({self.serial_number})"

    @staticmethod
    def default_status_for(equipment_type):
        """Desktops are registered inactive, everything else available."""
        return "inactive" if equipment_type == "desktop" else "available"

    @property
    def is_available(self):
        return self.status == "available"


class EquipmentImage(models.Model):
    """Gallery photograph of an equipment item."""

    equipment = models.ForeignKey(
        Equipment, on_delete=models.CASCADE, related_name="images"
    )
    image = models.ImageField(
        upload_to="equipment/", storage=get_evidence_storage
    )
    caption = models.CharField(max_length=200, blank=True)
    uploaded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["uploaded_at"]

    def __str__(self):
        return f"Image for {self.equipment}"


class LoanManager(models.Manager):
    """Custom manager with the standard equipment join for Loan."""

    def with_related(self):
        return self.select_related("equipment", "created_by").prefetch_related(
            "evidence"
        )


class Loan(models.Model):
    """A loan of one equipment item to a named borrower."""

    STATUS_CHOICES = [
        ("active", "Activo"),
        ("returned", "Devuelto"),
        ("delayed", "Retrasado"),
        ("lost", "Extraviado"),
        ("damaged", "Dañado"),
    ]

    OPEN_STATUSES = ("active", "delayed")
    CLOSED_STATUSES = ("returned", "lost", "damaged")

    # Valid state transitions: from_status -> [to_statuses]
    VALID_TRANSITIONS = {
        "active": ["returned", "delayed", "lost", "damaged"],
        "delayed": ["active", "returned", "lost", "damaged"],
        "damaged": ["returned"],
        "lost": ["returned"],
        "returned": [],
    }

    equipment = models.ForeignKey(
        Equipment, on_delete=models.PROTECT, related_name="loans"
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="registered_loans",
        help_text="The staff member who registered the loan",
    )
    borrower_name = models.CharField(max_length=200)
    borrower_department = models.CharField(max_length=200)
    start_date = models.DateTimeField()
    expected_return_date = models.DateTimeField()
    actual_return_date = models.DateTimeField(null=True, blank=True)
    status = models.CharField(
        max_length=20, choices=STATUS_CHOICES, default="active"
    )
    accessories = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True)
    form_filled = models.BooleanField(
        default=False,
        help_text="The signed FI-1557 paper form has been photographed",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = LoanManager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="idx_loan_status"),
            models.Index(
                fields=["borrower_department"], name="idx_loan_department"
            ),
        ]

    def __str__(self):
        return f"{self.borrower_name} - {self.equipment}"

    def clean(self):
        from .services.dates import as_calendar_date

        if self.start_date and self.expected_return_date:
            if as_calendar_date(self.expected_return_date) < as_calendar_date(
                self.start_date
            ):
                raise ValidationError(
                    {
                        "expected_return_date": (
                            "The expected return date cannot be before "
                            "the start date."
                        )
                    }
                )

    @property
    def is_open(self):
        return self.status in self.OPEN_STATUSES

    def can_transition_to(self, new_status):
        return new_status in self.VALID_TRANSITIONS.get(self.status, [])

    def is_overdue(self, reference=None):
        """Open and due strictly before the reference day (default today)."""
        from .services.dates import is_overdue

        if not self.is_open:
            return False
        return is_overdue(self.expected_return_date, reference)

    @property
    def current_evidence(self):
        """The evidence record in use, or None."""
        records = list(self.evidence.all())
        return records[0] if records else None


class LoanEvidence(models.Model):
    """Photograph of the signed FI-1557 form for a loan.

    ``storage_path`` is fixed at upload time. ``display_url`` is derived
    from it and recomputed whenever the record is shown; it is never a
    durable link.
    """

    loan = models.ForeignKey(
        Loan, on_delete=models.CASCADE, related_name="evidence"
    )
    storage_path = models.CharField(max_length=500)
    display_url = models.TextField(blank=True)
    filename = models.CharField(max_length=255)
    uploaded_at = models.DateTimeField(default=timezone.now)
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="uploaded_evidence",
    )

    class Meta:
        ordering = ["-uploaded_at"]
        verbose_name_plural = "loan evidence"

    def __str__(self):
        return self.filename
