from django.core.management.base import BaseCommand, CommandError

from branches.models import Branch
from orders.models import Order
from orders.services import DailySequenceService


class Command(BaseCommand):
    help = "Assign business dates and kitchen ticket numbers to orders created without them"

    def add_arguments(self, parser):
        parser.add_argument(
            "--branch",
            type=int,
            help="Only backfill orders of this branch id",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show how many orders would be numbered without making changes",
        )

    def handle(self, *args, **options):
        branch = None
        if options["branch"] is not None:
            try:
                branch = Branch.objects.get(pk=options["branch"])
            except Branch.DoesNotExist:
                raise CommandError(f"Branch {options['branch']} does not exist")

        if options["dry_run"]:
            pending = Order.objects.filter(daily_sequence__isnull=True)
            if branch is not None:
                pending = pending.filter(branch=branch)
            self.stdout.write(
                self.style.WARNING(f"DRY RUN MODE - {pending.count()} orders would be numbered")
            )
            return

        updated = DailySequenceService.backfill(branch=branch)
        self.stdout.write(self.style.SUCCESS(f"Numbered {updated} orders"))
