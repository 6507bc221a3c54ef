"""Admin configuration for loans app using django-unfold."""

from unfold.admin import ModelAdmin, TabularInline
from unfold.contrib.filters.admin import ChoicesDropdownFilter
from unfold.decorators import action, display

from django.contrib import admin, messages
from django.core.exceptions import ValidationError
from django.template.response import TemplateResponse
from django.utils.html import format_html

from .exceptions import UploadFailed
from .forms import EvidenceUploadForm, LoanForm
from .models import Equipment, EquipmentImage, Loan, LoanEvidence
from .services.dates import format_for_display
from .services.evidence import refresh_display_url


class EquipmentImageInline(TabularInline):
    model = EquipmentImage
    extra = 1
    fields = ["image", "caption", "uploaded_at"]
    readonly_fields = ["uploaded_at"]


class LoanEvidenceInline(TabularInline):
    model = LoanEvidence
    extra = 0
    can_delete = False
    fields = ["filename", "display_link", "uploaded_at", "uploaded_by"]
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False

    @display(description="Link")
    def display_link(self, obj):
        url = refresh_display_url(obj).url
        if url:
            return format_html('<a href="{}" target="_blank">View</a>', url)
        return "-"


@admin.register(Equipment)
class EquipmentAdmin(ModelAdmin):
    list_display = [
        "display_header",
        "type",
        "display_status",
        "display_loan_count",
        "updated_at",
    ]
    list_filter = [
        ("status", ChoicesDropdownFilter),
        ("type", ChoicesDropdownFilter),
    ]
    list_filter_submit = True
    search_fields = ["model", "serial_number", "type"]
    readonly_fields = ["created_at", "updated_at"]
    inlines = [EquipmentImageInline]

    @display(description="Equipment", header=True, ordering="model")
    def display_header(self, obj):
        return obj.model, obj.serial_number

    @display(
        description="Status",
        label={
            "available": "success",
            "loaned": "info",
            "maintenance": "warning",
            "lost": "danger",
            "damaged": "danger",
            "inactive": "default",
            "unavailable": "default",
        },
    )
    def display_status(self, obj):
        return obj.status

    @display(description="Loans")
    def display_loan_count(self, obj):
        return obj.loans.count()


@admin.register(Loan)
class LoanAdmin(ModelAdmin):
    form = LoanForm
    list_display = [
        "display_header",
        "borrower_department",
        "display_status",
        "display_start",
        "display_expected",
        "form_filled",
    ]
    list_filter = [
        ("status", ChoicesDropdownFilter),
        ("equipment__type", ChoicesDropdownFilter),
        "form_filled",
    ]
    list_filter_submit = True
    search_fields = [
        "borrower_name",
        "borrower_department",
        "equipment__serial_number",
        "equipment__model",
    ]
    # Status only moves through the actions below
    readonly_fields = [
        "status",
        "form_filled",
        "actual_return_date",
        "created_by",
        "created_at",
        "updated_at",
    ]
    inlines = [LoanEvidenceInline]
    actions = ["mark_returned", "refresh_evidence_links", "upload_evidence"]

    def get_queryset(self, request):
        return Loan.objects.with_related()

    def get_readonly_fields(self, request, obj=None):
        readonly = list(super().get_readonly_fields(request, obj))
        if obj is not None:
            readonly.append("equipment")
        return readonly

    def save_model(self, request, obj, form, change):
        from .services.loans import create_loan, update_loan

        data = form.service_data()
        if change:
            update_loan(obj, **data)
            return
        loan = create_loan(created_by=request.user, **data)
        obj.pk = loan.pk
        obj.refresh_from_db()

    @display(description="Borrower", header=True, ordering="borrower_name")
    def display_header(self, obj):
        return obj.borrower_name, str(obj.equipment)

    @display(
        description="Status",
        label={
            "active": "info",
            "delayed": "warning",
            "returned": "success",
            "lost": "danger",
            "damaged": "danger",
        },
    )
    def display_status(self, obj):
        return obj.status

    @display(description="Start", ordering="start_date")
    def display_start(self, obj):
        return format_for_display(obj.start_date)

    @display(description="Expected return", ordering="expected_return_date")
    def display_expected(self, obj):
        return format_for_display(obj.expected_return_date)

    @action(description="Mark as returned")
    def mark_returned(self, request, queryset):
        from .services.loans import update_loan_status

        count = 0
        for loan in queryset.select_related("equipment"):
            try:
                update_loan_status(loan, "returned")
            except ValidationError as e:
                messages.error(request, f"{loan}: {e.messages[0]}")
                continue
            count += 1
        if count:
            messages.success(request, f"{count} loan(s) marked as returned.")

    @action(description="Refresh evidence links")
    def refresh_evidence_links(self, request, queryset):
        from .services.evidence import (
            EvidenceURLResolver,
            refresh_evidence_urls,
        )

        resolver = EvidenceURLResolver()
        changed = sum(
            refresh_evidence_urls(loan, resolver)
            for loan in queryset.prefetch_related("evidence")
        )
        messages.success(request, f"{changed} evidence link(s) updated.")

    @action(description="Upload evidence photo...")
    def upload_evidence(self, request, queryset):
        from .services.evidence import upload_evidence

        if queryset.count() != 1:
            messages.error(
                request, "Select exactly one loan to upload evidence for."
            )
            return None
        loan = queryset.select_related("equipment").get()

        form = EvidenceUploadForm()
        if "apply" in request.POST:
            form = EvidenceUploadForm(request.POST, request.FILES)
            if form.is_valid():
                try:
                    upload = upload_evidence(
                        loan,
                        form.cleaned_data["file"],
                        uploaded_by=request.user,
                    )
                except UploadFailed as e:
                    messages.error(request, f"{loan}: {e}")
                    return None
                if upload.warning:
                    messages.warning(request, upload.warning)
                else:
                    messages.success(request, f"Evidence uploaded for {loan}.")
                return None
        return TemplateResponse(
            request,
            "admin/loans/upload_evidence.html",
            {
                **self.admin_site.each_context(request),
                "loan": loan,
                "form": form,
                "action": "upload_evidence",
                "opts": self.model._meta,
                "title": "Upload evidence photo",
            },
        )


@admin.register(LoanEvidence)
class LoanEvidenceAdmin(ModelAdmin):
    list_display = ["filename", "loan", "storage_path", "uploaded_at"]
    search_fields = ["filename", "storage_path", "loan__borrower_name"]
    readonly_fields = [
        "loan",
        "storage_path",
        "display_url",
        "filename",
        "uploaded_at",
        "uploaded_by",
    ]

    def has_add_permission(self, request):
        return False
