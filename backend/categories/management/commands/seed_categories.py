# categories/management/commands/seed_categories.py

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand, CommandError

from accounts.models import Company
from categories.presets import seed_preset_categories
from categories.store import CategoryStoreError


class Command(BaseCommand):
    help = "Seed the default chart of accounts for a company"

    def add_arguments(self, parser):
        parser.add_argument("company_id", type=int)

    def handle(self, *args, **options):
        company_id = options["company_id"]
        if not Company.objects.filter(id=company_id).exists():
            raise CommandError(f"Company {company_id} does not exist.")

        try:
            steps = async_to_sync(seed_preset_categories)(company_id)
        except CategoryStoreError as exc:
            raise CommandError(exc.message) from exc

        failed = [step for step in steps if not step.result.success]
        for step in failed:
            self.stderr.write(f"{step.action} {step.name}: {step.result.error}")

        self.stdout.write(self.style.SUCCESS(
            f"Done! Applied {len(steps) - len(failed)} operations, {len(failed)} failed."
        ))
