from .vendor import Business, Subscription, SubscriptionPlan


__all__ = ["Business", "Subscription", "SubscriptionPlan"]
