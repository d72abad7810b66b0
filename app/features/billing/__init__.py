"""Billing feature module"""

# Import domain and schemas first (they don't cause circular dependencies)
from app.features.billing.domain import BillingCycle, BillingMethod, SubscriptionStatus
from app.features.billing.schemas import (
    CustomerInfo,
    CreateCheckoutRequest,
    CreateCheckoutResponse,
    CreateInvoiceRequest,
    CreateInvoiceResponse,
    CheckSubscriptionResponse,
    CustomerPortalResponse,
)
from app.features.billing.plans import BillingSelection, Plan, get_plan_by_id, get_stripe_price_id

# Import service and webhook_service
from app.features.billing.service import BillingService
from app.features.billing.webhook_service import BillingWebhookService
from app.features.billing.client import BillingClient, BillingError

from app.features.billing.api import router

__all__ = [
    "router",
    "BillingService",
    "BillingWebhookService",
    "BillingClient",
    "BillingError",
    "BillingCycle",
    "BillingMethod",
    "SubscriptionStatus",
    "BillingSelection",
    "Plan",
    "get_plan_by_id",
    "get_stripe_price_id",
    "CustomerInfo",
    "CreateCheckoutRequest",
    "CreateCheckoutResponse",
    "CreateInvoiceRequest",
    "CreateInvoiceResponse",
    "CheckSubscriptionResponse",
    "CustomerPortalResponse",
]
