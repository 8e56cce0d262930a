from decimal import Decimal
from io import StringIO

import pytest
from django.core.management import CommandError, call_command
from django.test import TestCase

from infrastructure.container import container
from marketplace.tests.factories import (
    BusinessFactory,
    CategoryFactory,
    SubcategoryFactory,
    SubscriptionPlanFactory,
    create_listed_product,
)


@pytest.mark.integration
class PlanWeightsCommandTest(TestCase):
    def setUp(self):
        container.reset()

    def tearDown(self):
        container.reset()

    def test_prints_plan_table(self):
        SubscriptionPlanFactory(name="Free", price=Decimal("0.00"))
        SubscriptionPlanFactory(name="Premium", price=Decimal("50.00"))
        out = StringIO()

        call_command("plan_weights", "--backend", "database", stdout=out)

        lines = out.getvalue().splitlines()
        self.assertIn("Premium", lines[1])
        self.assertIn("1.000", lines[1])
        self.assertIn("Free", lines[2])
        self.assertIn("0.010", lines[2])
        self.assertIn("2 plans", out.getvalue())

    def test_no_plans(self):
        out = StringIO()

        call_command("plan_weights", "--backend", "mock", stdout=out)

        self.assertIn("No subscription plans found", out.getvalue())


@pytest.mark.integration
class ExplainListingCommandTest(TestCase):
    def setUp(self):
        container.reset()
        self.category = CategoryFactory(slug="rugs")
        self.subcategory = SubcategoryFactory(category=self.category, slug="runners")
        self.plan = SubscriptionPlanFactory()

    def tearDown(self):
        container.reset()

    def test_lists_removed_products(self):
        create_listed_product(BusinessFactory(plan=self.plan), self.category)
        hidden = create_listed_product(BusinessFactory(), self.category, title="Hidden Rug", is_published=False)
        out = StringIO()

        call_command("explain_listing", "--category-slug", "rugs", stdout=out)

        output = out.getvalue()
        self.assertIn(str(hidden.id), output)
        self.assertIn("product_unpublished, no_active_subscription", output)
        self.assertIn("1 products removed before ranking", output)

    def test_subcategory_slug(self):
        create_listed_product(BusinessFactory(), self.category, subcategory=self.subcategory)
        out = StringIO()

        call_command("explain_listing", "--subcategory-slug", "runners", stdout=out)

        self.assertIn("1 products removed before ranking", out.getvalue())

    def test_limit(self):
        for _ in range(3):
            create_listed_product(BusinessFactory(), self.category)
        out = StringIO()

        call_command("explain_listing", "--category-slug", "rugs", "--limit", "2", stdout=out)

        self.assertIn("2 products removed before ranking", out.getvalue())

    def test_unknown_slug(self):
        with self.assertRaises(CommandError):
            call_command("explain_listing", "--category-slug", "missing")

    def test_requires_a_slug(self):
        with self.assertRaises(CommandError):
            call_command("explain_listing")
