import logging

from django.core.management.base import BaseCommand, CommandError

from infrastructure.billing import BillingException
from infrastructure.container import container
from marketplace.listing.domain.vendor_meta import build_plan_meta


logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Prints the priority and interleaving weight derived for every subscription plan."

    def add_arguments(self, parser):
        parser.add_argument("--backend", choices=["database", "mock"], help="Billing backend (default: settings)")

    def handle(self, *args, **options):
        billing = container.billing(options.get("backend"))

        try:
            plans = billing.list_plans()
        except BillingException as e:
            raise CommandError(f"Could not load subscription plans: {e}") from e

        meta = build_plan_meta(plans)
        if not meta:
            self.stdout.write(self.style.WARNING("No subscription plans found; every vendor gets equal weight."))
            return

        self.stdout.write(f"{'PLAN ID':<38} {'NAME':<20} {'PRICE':>10} {'PRIORITY':>9} {'WEIGHT':>8}")
        for plan in sorted(meta.values(), key=lambda plan: -plan.priority):
            self.stdout.write(
                f"{plan.plan_id:<38} {plan.name[:20]:<20} {plan.price:>10.2f} {plan.priority:>9} {plan.weight:>8.3f}"
            )

        self.stdout.write(self.style.SUCCESS(f"{len(meta)} plans"))
