"""Domain models for Billing feature"""

from enum import Enum


class BillingMethod(str, Enum):
    """How the customer pays"""
    SUBSCRIPTION = "subscription"
    INVOICE = "invoice"


class BillingCycle(str, Enum):
    """Billing interval"""
    MONTHLY = "monthly"
    ANNUAL = "annual"


class SubscriptionStatus(str, Enum):
    """Stripe subscription status values we act on"""
    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    UNPAID = "unpaid"
