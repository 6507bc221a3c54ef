"""Forms for the loans app."""

from django import forms

from .models import Equipment, Loan
from .services.dates import (
    as_calendar_date,
    to_calendar_date,
    to_stored_timestamp,
)
from .services.evidence import validate_evidence_file


class LoanForm(forms.ModelForm):
    """Loan registration and edit form.

    Dates arrive as date-picker text (``yyyy-MM-dd``); ``cleaned_data``
    holds the normalized instants, ready for ``create_loan`` and
    ``update_loan``. Only available equipment can be picked.
    """

    start_date = forms.CharField(help_text="YYYY-MM-DD")
    expected_return_date = forms.CharField(help_text="YYYY-MM-DD")
    accessories = forms.CharField(
        required=False,
        widget=forms.Textarea(attrs={"rows": 3}),
        help_text="One accessory per line.",
    )

    class Meta:
        model = Loan
        fields = [
            "equipment",
            "borrower_name",
            "borrower_department",
            "start_date",
            "expected_return_date",
            "accessories",
            "notes",
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if "equipment" in self.fields:
            self.fields["equipment"].queryset = Equipment.objects.filter(
                status="available"
            )
        if self.instance.pk:
            for name in ("start_date", "expected_return_date"):
                self.initial[name] = to_calendar_date(
                    getattr(self.instance, name)
                )
            self.initial["accessories"] = "\n".join(
                self.instance.accessories or []
            )

    def clean_start_date(self):
        return to_stored_timestamp(self.cleaned_data["start_date"])

    def clean_expected_return_date(self):
        return to_stored_timestamp(self.cleaned_data["expected_return_date"])

    def clean_accessories(self):
        raw = self.cleaned_data.get("accessories", "")
        return [line.strip() for line in raw.splitlines() if line.strip()]

    def clean(self):
        cleaned = super().clean()
        start = cleaned.get("start_date")
        expected = cleaned.get("expected_return_date")
        if start and expected:
            if as_calendar_date(expected) < as_calendar_date(start):
                self.add_error(
                    "expected_return_date",
                    "The expected return date cannot be before the start "
                    "date.",
                )
        return cleaned

    def service_data(self):
        """Cleaned values keyed the way the loan services expect them."""
        return {
            name: self.cleaned_data[name]
            for name in LoanForm.Meta.fields
            if name in self.cleaned_data
        }


class LoanStatusForm(forms.Form):
    """Status change for an existing loan, limited to allowed moves."""

    status = forms.ChoiceField(choices=Loan.STATUS_CHOICES)
    actual_return_date = forms.CharField(
        required=False, help_text="YYYY-MM-DD, defaults to now."
    )

    def __init__(self, *args, loan=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.loan = loan
        if loan is not None:
            allowed = {loan.status, *Loan.VALID_TRANSITIONS[loan.status]}
            self.fields["status"].choices = [
                (value, label)
                for value, label in Loan.STATUS_CHOICES
                if value in allowed
            ]
            self.fields["status"].initial = loan.status

    def clean_actual_return_date(self):
        return to_stored_timestamp(self.cleaned_data["actual_return_date"])


class EvidenceUploadForm(forms.Form):
    """Photograph of the signed FI-1557 form."""

    file = forms.FileField()

    def clean_file(self):
        file = self.cleaned_data["file"]
        validate_evidence_file(file)
        return file


class EquipmentForm(forms.ModelForm):
    """Equipment create/edit form. A blank status uses the type default."""

    status = forms.ChoiceField(
        choices=[("", "---------")] + Equipment.STATUS_CHOICES,
        required=False,
    )

    class Meta:
        model = Equipment
        fields = ["type", "serial_number", "model", "status"]

    def clean(self):
        cleaned = super().clean()
        if not cleaned.get("status") and cleaned.get("type"):
            cleaned["status"] = Equipment.default_status_for(cleaned["type"])
        return cleaned
