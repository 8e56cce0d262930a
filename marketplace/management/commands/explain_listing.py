import logging

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from infrastructure.container import container
from marketplace.listing.domain import policy
from marketplace.listing.domain.explain import ExplainPipeline
from marketplace.listing.domain.snapshots import ListingFilter


logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Lists the products a category or subcategory listing drops, with every removal reason."

    def add_arguments(self, parser):
        parser.add_argument("--category-slug", help="Category slug")
        parser.add_argument("--subcategory-slug", help="Subcategory slug")
        parser.add_argument(
            "--limit",
            type=int,
            default=policy.EXPLAIN_RESULT_BOUNDS[2],
            help="Maximum rows to print",
        )

    def handle(self, *args, **options):
        category_slug = options.get("category_slug")
        subcategory_slug = options.get("subcategory_slug")
        if not category_slug and not subcategory_slug:
            raise CommandError("Pass --category-slug and/or --subcategory-slug")

        repository = container.catalog_repository()

        category_id = None
        if category_slug:
            category_id = repository.resolve_category_slug(category_slug)
            if category_id is None:
                raise CommandError(f"Unknown category slug '{category_slug}'")

        subcategory_id = None
        if subcategory_slug:
            found = repository.resolve_subcategory_slug(subcategory_slug, category_id)
            if found is None:
                raise CommandError(f"Unknown subcategory slug '{subcategory_slug}'")
            subcategory_id, parent_id = found
            category_id = category_id or parent_id

        logs = ExplainPipeline(repository).explain(
            ListingFilter(category_id=category_id, subcategory_id=subcategory_id),
            timezone.now(),
            result_limit=options["limit"],
        )[: max(0, options["limit"])]

        for log in logs:
            self.stdout.write(f"{log.product_id}  {log.product_title}  [{log.business_name or '-'}]")
            self.stdout.write(f"    reasons: {', '.join(log.removal_reasons)}")
            for issue in log.variant_issues:
                self.stdout.write(f"    variant {issue.variant_id}: {', '.join(issue.reasons)}")

        self.stdout.write(self.style.SUCCESS(f"{len(logs)} products removed before ranking"))
