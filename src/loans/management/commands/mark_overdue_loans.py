"""Management command to flag overdue loans as delayed."""

from django.core.management.base import BaseCommand, CommandError

from loans.exceptions import InvalidDateFormat
from loans.services.loans import mark_overdue_loans


class Command(BaseCommand):
    help = "Move active loans past their expected return date to 'delayed'"

    def add_arguments(self, parser):
        parser.add_argument(
            "--date",
            help="Reference day as YYYY-MM-DD (default: today)",
        )

    def handle(self, *args, **options):
        try:
            updated = mark_overdue_loans(options.get("date"))
        except InvalidDateFormat as e:
            raise CommandError(e.messages[0])
        self.stdout.write(
            self.style.SUCCESS(f"{updated} loan(s) marked as delayed.")
        )
