"""Management command to recompute evidence display links."""

from django.core.management.base import BaseCommand, CommandError

from loans.models import Loan
from loans.services.evidence import EvidenceURLResolver, refresh_evidence_urls


class Command(BaseCommand):
    help = "Refresh the display links of loan evidence"

    def add_arguments(self, parser):
        parser.add_argument(
            "--loan",
            type=int,
            help="Only refresh the evidence of this loan ID",
        )

    def handle(self, *args, **options):
        loans = Loan.objects.filter(evidence__isnull=False).distinct()
        if options.get("loan"):
            loans = loans.filter(pk=options["loan"])
            if not loans.exists():
                raise CommandError(
                    f"Loan {options['loan']} has no evidence to refresh."
                )

        resolver = EvidenceURLResolver()
        changed = 0
        for loan in loans.prefetch_related("evidence"):
            changed += refresh_evidence_urls(loan, resolver)

        self.stdout.write(
            self.style.SUCCESS(f"{changed} evidence link(s) updated.")
        )
