"""Billing functions, plan catalogue and Stripe webhook endpoints"""
import logging
from dataclasses import asdict
from typing import List

import stripe
from fastapi import APIRouter, Depends, Header, HTTPException, Request
from supabase import Client  # type: ignore

from app.auth import AuthenticatedUser, get_current_user
from app.config import (
    SITE_URL,
    get_stripe_mode,
    get_stripe_publishable_key,
    get_stripe_secret_key,
    get_stripe_webhook_secret,
)
from app.features.billing.plans import get_all_plans, get_plan_by_id
from app.features.billing.price_resolution import default_price_chain
from app.features.billing.schemas import (
    BillingConfigResponse,
    CheckSubscriptionResponse,
    CreateCheckoutRequest,
    CreateCheckoutResponse,
    CreateInvoiceRequest,
    CreateInvoiceResponse,
    CustomerPortalResponse,
)
from app.features.billing.service import BillingService
from app.features.billing.webhook_service import BillingWebhookService
from app.infra.supabase import get_supabase_client
from app.infra.supabase.repositories import RepositoryFactory

logger = logging.getLogger(__name__)

functions_router = APIRouter(prefix="/functions/v1", tags=["billing"])
plans_router = APIRouter(prefix="/api/plans", tags=["plans"])
billing_router = APIRouter(prefix="/api/billing", tags=["billing"])


def get_billing_service(supabase: Client = Depends(get_supabase_client)) -> BillingService:
    repos = RepositoryFactory(supabase)
    return BillingService(
        repos,
        default_price_chain(repos.price_map),
        get_stripe_secret_key(),
    )


def request_origin(request: Request) -> str:
    """Origin of the calling page, used for Stripe return URLs"""
    return (request.headers.get("origin") or SITE_URL).rstrip("/")


# ============================================================================
# BILLING FUNCTIONS
# ============================================================================

@functions_router.post("/check-subscription", response_model=CheckSubscriptionResponse)
async def check_subscription(
    user: AuthenticatedUser = Depends(get_current_user),
    service: BillingService = Depends(get_billing_service),
):
    """Active or trialing subscription of the caller's tenant"""
    return await service.check_subscription(user)


@functions_router.post(
    "/create-checkout",
    response_model=CreateCheckoutResponse,
    response_model_by_alias=True,
)
async def create_checkout(
    req: CreateCheckoutRequest,
    request: Request,
    user: AuthenticatedUser = Depends(get_current_user),
    service: BillingService = Depends(get_billing_service),
):
    """
    Start a Stripe Checkout subscription for the caller

    Accepts an explicit priceId or a planId + billingCycle pair that is
    resolved through the price map.
    """
    return await service.checkout(user, req, request_origin(request))


@functions_router.post(
    "/create-invoice",
    response_model=CreateInvoiceResponse,
    response_model_by_alias=True,
)
async def create_invoice(
    req: CreateInvoiceRequest,
    service: BillingService = Depends(get_billing_service),
):
    """Create and email a Stripe invoice (quote request, no login required)"""
    return await service.create_invoice(req)


@functions_router.post("/customer-portal", response_model=CustomerPortalResponse)
async def customer_portal(
    request: Request,
    user: AuthenticatedUser = Depends(get_current_user),
    service: BillingService = Depends(get_billing_service),
):
    """Open the Stripe billing portal for the caller"""
    url = await service.customer_portal(user, request_origin(request))
    return CustomerPortalResponse(url=url)


# ============================================================================
# STRIPE WEBHOOK ENDPOINT
# ============================================================================

def verify_webhook_signature(payload: bytes, signature: str, secret: str) -> dict:
    """Verify Stripe webhook signature and return the event as a plain dict"""
    try:
        event = stripe.Webhook.construct_event(payload, signature, secret)
        logger.info(f"Stripe webhook signature verified for event {event.id}")
        return event.to_dict()
    except ValueError as e:
        logger.error(f"Invalid payload: {e}")
        raise HTTPException(status_code=400, detail=f"Webhook Error: {str(e)}")
    except stripe.SignatureVerificationError as e:
        logger.error(f"Invalid signature: {e}")
        raise HTTPException(status_code=400, detail=f"Webhook Error: {str(e)}")


@functions_router.post("/stripe-webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: str = Header(None, alias="stripe-signature"),
    supabase: Client = Depends(get_supabase_client),
):
    """
    Stripe webhook endpoint keeping the subscriptions table in sync

    Handles:
    - checkout.session.completed: first subscription, referral recorded
    - customer.subscription.created/updated/resumed/trial_will_end: mirror refresh
    - customer.subscription.deleted: terminal status
    - invoice.payment_succeeded (subscription_cycle): refresh, referral reward
    - invoice.payment_failed: past_due

    Handler failures return 500 so Stripe redelivers the event.
    """
    secret_key = get_stripe_secret_key()
    webhook_secret = get_stripe_webhook_secret()
    if not secret_key or not webhook_secret or not stripe_signature:
        logger.error(
            f"Missing Stripe webhook config (key={bool(secret_key)}, secret={bool(webhook_secret)}, "
            f"signature={bool(stripe_signature)}, mode={get_stripe_mode()})"
        )
        raise HTTPException(status_code=400, detail="Stripe configuration error.")

    payload = await request.body()
    logger.info(f"Received Stripe webhook request (payload size: {len(payload)} bytes)")

    event = verify_webhook_signature(payload, stripe_signature, webhook_secret)
    event_type = event["type"]
    event_id = event.get("id", "unknown")

    webhook_service = BillingWebhookService(RepositoryFactory(supabase), secret_key)
    try:
        await webhook_service.handle_webhook_event(event_type, event["data"]["object"], event_id)
    except Exception as e:
        logger.error(f"Error processing webhook {event_type} (ID: {event_id}): {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Webhook handler error: {str(e)}")

    logger.info(f"Successfully processed webhook event {event_type} (ID: {event_id})")
    return {"received": True}


# ============================================================================
# PLANS & PUBLIC CONFIG
# ============================================================================

@plans_router.get("/")
async def list_plans() -> List[dict]:
    """Plan catalogue rendered by the pricing pages"""
    return [asdict(plan) for plan in get_all_plans()]


@plans_router.get("/{plan_id}")
async def get_plan(plan_id: str) -> dict:
    plan = get_plan_by_id(plan_id)
    if not plan:
        raise HTTPException(status_code=404, detail=f"Unknown plan: {plan_id}")
    return asdict(plan)


@billing_router.get("/config", response_model=BillingConfigResponse, response_model_by_alias=True)
async def billing_config():
    """Stripe mode and publishable key for the browser"""
    return BillingConfigResponse(mode=get_stripe_mode(), publishable_key=get_stripe_publishable_key())


router = APIRouter()
router.include_router(functions_router)
router.include_router(plans_router)
router.include_router(billing_router)
