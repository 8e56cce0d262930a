import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone


class SubscriptionPlan(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, unique=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    stripe_price_id = models.CharField(max_length=120, blank=True)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-price", "created_at"]
        app_label = "marketplace"

    def __str__(self):
        return f"{self.name} ({self.price})"


class SubscriptionQuerySet(models.QuerySet):
    def active(self, now=None):
        """Subscriptions the billing provider reports as active and not yet expired."""
        now = now or timezone.now()
        return self.filter(status=Subscription.STATUS_ACTIVE).filter(Q(end_date__isnull=True) | Q(end_date__gt=now))


class Subscription(models.Model):
    STATUS_ACTIVE = "active"
    STATUS_EXPIRED = "expired"
    STATUS_CANCELLED = "cancelled"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_EXPIRED, "Expired"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    # Business is created after checkout, so the link may be empty for a while
    business = models.ForeignKey(
        "marketplace.Business", on_delete=models.SET_NULL, null=True, blank=True, related_name="subscriptions"
    )
    plan = models.ForeignKey(SubscriptionPlan, on_delete=models.PROTECT, related_name="subscriptions")
    stripe_subscription_id = models.CharField(max_length=120, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    start_date = models.DateTimeField(default=timezone.now)
    end_date = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = SubscriptionQuerySet.as_manager()

    class Meta:
        ordering = ["-start_date"]
        app_label = "marketplace"
        indexes = [models.Index(fields=["business", "status"], name="subscription_business_idx")]

    def __str__(self):
        return f"{self.plan.name} [{self.status}]"


class Business(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="businesses"
    )
    is_active = models.BooleanField(default=True)
    minority_type = models.CharField(max_length=60, blank=True)
    # Current subscription, maintained by billing webhooks
    subscription = models.ForeignKey(
        Subscription, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "businesses"
        app_label = "marketplace"

    def __str__(self):
        return self.name
