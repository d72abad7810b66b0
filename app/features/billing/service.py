"""Billing service for checkout, invoice, portal and subscription status"""
import logging
from typing import Any, Dict, Optional

import stripe
from fastapi import HTTPException

from app.auth import AuthenticatedUser
from app.config import STRIPE_API_VERSION
from app.features.billing.domain import BillingCycle
from app.features.billing.price_resolution import PriceResolutionChain, build_query
from app.features.billing.schemas import (
    CheckSubscriptionResponse,
    CreateCheckoutRequest,
    CreateCheckoutResponse,
    CreateInvoiceRequest,
    CreateInvoiceResponse,
    CustomerInfo,
    CustomerSummary,
    InvoiceSummary,
)
from app.infra.supabase.repositories import RepositoryFactory

logger = logging.getLogger(__name__)

INVOICE_SOURCE = "firegauge_marketing"
INVOICE_DAYS_UNTIL_DUE = 30


class BillingService:
    """Service for Stripe billing operations on behalf of a caller"""

    def __init__(
        self,
        repos: RepositoryFactory,
        price_chain: PriceResolutionChain,
        stripe_api_key: Optional[str],
    ):
        self.repos = repos
        self.price_chain = price_chain
        self.stripe_api_key = stripe_api_key

    # ============================================================================
    # CONFIGURATION
    # ============================================================================

    def _stripe_options(self) -> Dict[str, str]:
        """
        Per-request Stripe options

        Raises:
            HTTPException(500): Stripe secret key is not configured
        """
        if not self.stripe_api_key:
            logger.error("Stripe secret key is not set for the current mode")
            raise HTTPException(status_code=500, detail="Stripe configuration missing")
        return {"api_key": self.stripe_api_key, "stripe_version": STRIPE_API_VERSION}

    # ============================================================================
    # STRIPE OPERATIONS
    # ============================================================================

    def find_or_create_customer(
        self,
        email: str,
        metadata: Optional[Dict[str, str]] = None,
        customer_info: Optional[CustomerInfo] = None,
    ) -> stripe.Customer:
        """
        Reuse the first Stripe customer with this email or create one

        Single responsibility: Customer lookup/creation

        Raises:
            HTTPException(500): Stripe error
        """
        options = self._stripe_options()
        try:
            existing = stripe.Customer.list(email=email, limit=1, **options)
            if existing.data:
                customer = existing.data[0]
                logger.info(f"Found existing Stripe customer {customer.id}")
                return customer

            params: Dict[str, Any] = {"email": email, "metadata": metadata or {}}
            if customer_info:
                params["name"] = customer_info.name or email
                if customer_info.phone:
                    params["phone"] = customer_info.phone
                if customer_info.address:
                    params["address"] = customer_info.address.model_dump(exclude_none=True)

            customer = stripe.Customer.create(**params, **options)
            logger.info(f"Created Stripe customer {customer.id}")
            return customer

        except stripe.StripeError as e:
            logger.error(f"Failed to create Stripe customer: {e}")
            raise HTTPException(status_code=500, detail="Failed to create customer")

    def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        user_id: str,
        origin: str,
        metadata: Dict[str, str],
    ) -> stripe.checkout.Session:
        """
        Create a hosted Stripe Checkout Session for a subscription

        Single responsibility: Checkout session creation

        Raises:
            HTTPException(500): Stripe error
        """
        session_metadata = {**metadata, "supabase_user_id": user_id}
        try:
            session = stripe.checkout.Session.create(
                mode="subscription",
                customer=customer_id,
                line_items=[{"price": price_id, "quantity": 1}],
                success_url=f"{origin}/billing?success=true",
                cancel_url=f"{origin}/billing?canceled=true",
                allow_promotion_codes=True,
                metadata=session_metadata,
                # Renewal invoices read referral_code from the subscription
                subscription_data={"metadata": session_metadata},
                **self._stripe_options(),
            )
            logger.info(f"Created checkout session {session.id} for user {user_id}")
            return session

        except stripe.StripeError as e:
            logger.error(f"Failed to create checkout session: {e}")
            raise HTTPException(
                status_code=500,
                detail=f"Failed to create checkout session: {str(e)}"
            )

    def create_portal_session(self, customer_id: str, return_url: str) -> stripe.billing_portal.Session:
        """
        Create Stripe Customer Portal session

        Single responsibility: Portal session creation

        Raises:
            HTTPException(500): Stripe error
        """
        try:
            portal_session = stripe.billing_portal.Session.create(
                customer=customer_id,
                return_url=return_url,
                **self._stripe_options(),
            )
            logger.info(f"Created portal session for customer {customer_id}")
            return portal_session

        except stripe.StripeError as e:
            logger.error(f"Failed to create portal session: {e}")
            raise HTTPException(
                status_code=500,
                detail=f"Failed to create portal session: {str(e)}"
            )

    def apply_promo_code(self, invoice_id: str, promo_code: str) -> bool:
        """
        Attach a promotion code, or failing that a coupon id, to a draft invoice

        Unknown or invalid codes leave the invoice untouched.
        """
        options = self._stripe_options()
        try:
            promos = stripe.PromotionCode.list(code=promo_code, active=True, limit=1, **options)
            if promos.data:
                stripe.Invoice.modify(
                    invoice_id,
                    discounts=[{"promotion_code": promos.data[0].id}],
                    **options,
                )
                logger.info(f"Applied promotion code {promo_code} to invoice {invoice_id}")
                return True

            coupon = stripe.Coupon.retrieve(promo_code, **options)
            if coupon and coupon.valid:
                stripe.Invoice.modify(invoice_id, discounts=[{"coupon": coupon.id}], **options)
                logger.info(f"Applied coupon {promo_code} to invoice {invoice_id}")
                return True

        except stripe.StripeError as e:
            logger.warning(f"Could not apply promo code {promo_code} to invoice {invoice_id}: {e}")
        return False

    # ============================================================================
    # FUNCTIONS
    # ============================================================================

    async def checkout(
        self,
        user: AuthenticatedUser,
        req: CreateCheckoutRequest,
        origin: str,
    ) -> CreateCheckoutResponse:
        """Resolve the price and open a Checkout Session for the caller"""
        self._stripe_options()
        if not user.email:
            raise HTTPException(status_code=400, detail="User email is not available")

        price_id = await self.price_chain.resolve_or_400(
            build_query(req.price_id, req.plan_id, req.billing_cycle.value)
        )
        customer = self.find_or_create_customer(user.email, metadata={"user_id": user.id})

        metadata = dict(req.metadata)
        if req.plan_id:
            metadata.setdefault("plan_id", req.plan_id)
        metadata.setdefault("billing_cycle", req.billing_cycle.value)

        session = self.create_checkout_session(customer.id, price_id, user.id, origin, metadata)
        if not session.url:
            raise HTTPException(status_code=500, detail="Checkout session has no URL")
        return CreateCheckoutResponse(url=session.url, session_id=session.id)

    async def create_invoice(self, req: CreateInvoiceRequest) -> CreateInvoiceResponse:
        """
        Create, finalize and email a Stripe invoice for a quote request

        Raises:
            HTTPException(400): no price, no customer email or unknown price
            HTTPException(500): Stripe configuration or invoice failure
        """
        options = self._stripe_options()
        price_id = await self.price_chain.resolve_or_400(
            build_query(req.price_id, req.plan_id, req.billing_cycle.value)
        )

        customer_info = req.customer_info
        if not customer_info or not customer_info.email:
            raise HTTPException(status_code=400, detail="Customer email is required")

        plan_name = req.plan_name or "unknown"
        cycle = req.billing_cycle.value
        customer = self.find_or_create_customer(
            customer_info.email,
            metadata={
                "source": INVOICE_SOURCE,
                "plan_requested": plan_name,
                "billing_cycle": cycle,
                **req.metadata,
            },
            customer_info=customer_info,
        )

        try:
            price = stripe.Price.retrieve(price_id, **options)
            logger.info(f"Invoice price {price.id}: {price.unit_amount} {price.currency}")
        except stripe.StripeError as e:
            logger.error(f"Price retrieval failed for {price_id}: {e}")
            raise HTTPException(status_code=400, detail="Invalid price ID")

        try:
            invoice = stripe.Invoice.create(
                customer=customer.id,
                collection_method="send_invoice",
                days_until_due=INVOICE_DAYS_UNTIL_DUE,
                auto_advance=False,
                metadata={
                    "source": INVOICE_SOURCE,
                    "plan_name": plan_name,
                    "billing_cycle": cycle,
                    "quote_request": "true",
                    **req.metadata,
                },
                custom_fields=[
                    {"name": "FireGauge Plan", "value": req.plan_name or "Unknown Plan"},
                    {
                        "name": "Billing Cycle",
                        "value": "Annual" if req.billing_cycle == BillingCycle.ANNUAL else "Monthly",
                    },
                ],
                **options,
            )
            logger.info(f"Created invoice {invoice.id} for customer {customer.id}")

            stripe.InvoiceItem.create(
                customer=customer.id,
                invoice=invoice.id,
                price=price_id,
                quantity=1,
                **options,
            )

            if req.promo_code:
                self.apply_promo_code(invoice.id, req.promo_code)

            finalized = stripe.Invoice.finalize_invoice(invoice.id, **options)
            logger.info(f"Finalized invoice {finalized.id}: total={finalized.total} status={finalized.status}")

            sent = stripe.Invoice.send_invoice(finalized.id, **options)
            logger.info(f"Sent invoice {sent.id}")

        except stripe.StripeError as e:
            logger.error(f"Invoice creation failed: {e}", exc_info=True)
            raise HTTPException(
                status_code=500,
                detail={"error": "Failed to create invoice", "details": str(e)}
            )

        return CreateInvoiceResponse(
            success=True,
            invoice=InvoiceSummary(
                id=sent.id,
                total=sent.total,
                currency=sent.currency,
                status=sent.status,
                hosted_invoice_url=sent.hosted_invoice_url,
                invoice_pdf=sent.invoice_pdf,
            ),
            customer=CustomerSummary(id=customer.id, email=customer.email),
            message="Invoice created and sent successfully",
        )

    def resolve_portal_customer(self, user: AuthenticatedUser) -> str:
        """
        Stripe customer id for the caller

        Prefers user_metadata.stripe_customer_id, verified against Stripe,
        then falls back to an email lookup.

        Raises:
            HTTPException(400): no email to search by
            HTTPException(404): no Stripe customer for this user
            HTTPException(500): customer in metadata is missing or deleted
        """
        options = self._stripe_options()
        customer_id = user.user_metadata.get("stripe_customer_id")

        if customer_id:
            try:
                customer = stripe.Customer.retrieve(customer_id, **options)
            except stripe.StripeError as e:
                logger.error(f"Failed to verify Stripe customer {customer_id}: {e}")
                raise HTTPException(
                    status_code=500,
                    detail="Could not verify Stripe customer from user metadata."
                )
            if getattr(customer, "deleted", False):
                logger.warning(f"Stripe customer {customer_id} from metadata was deleted")
                raise HTTPException(
                    status_code=500,
                    detail="Associated Stripe customer has been deleted."
                )
            return customer_id

        if not user.email:
            raise HTTPException(
                status_code=400,
                detail="User email is not available for Stripe customer lookup."
            )
        try:
            customers = stripe.Customer.list(email=user.email, limit=1, **options)
        except stripe.StripeError as e:
            logger.error(f"Stripe customer lookup failed: {e}")
            raise HTTPException(status_code=500, detail=f"Stripe customer lookup failed: {str(e)}")

        if not customers.data:
            raise HTTPException(
                status_code=404,
                detail="No Stripe customer found for this user (checked metadata and email)."
            )
        return customers.data[0].id

    async def customer_portal(self, user: AuthenticatedUser, origin: str) -> str:
        """Open the Stripe billing portal for the caller and return its URL"""
        customer_id = self.resolve_portal_customer(user)
        portal_session = self.create_portal_session(customer_id, f"{origin}/billing")
        return portal_session.url

    async def check_subscription(self, user: AuthenticatedUser) -> CheckSubscriptionResponse:
        """
        Report the caller's tenant subscription from the subscriptions table

        Raises:
            HTTPException(403): user has no tenant
            HTTPException(500): database failure
        """
        try:
            app_user = await self.repos.users.find_by_auth_user_id(user.id)
            if not app_user or app_user.tenant_id is None:
                logger.warning(f"User {user.id} is not associated with a tenant")
                raise HTTPException(
                    status_code=403,
                    detail={"subscribed": False, "error": "User not associated with a tenant."}
                )

            subscription = await self.repos.subscriptions.find_active_for_tenant(app_user.tenant_id)

        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Subscription check failed for user {user.id}: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail={"error": str(e), "subscribed": False})

        if not subscription:
            logger.info(f"No active subscription for tenant {app_user.tenant_id}")
            return CheckSubscriptionResponse(subscribed=False)

        return CheckSubscriptionResponse(
            subscribed=True,
            status=subscription.status,
            plan_id=subscription.stripe_price_id,
            current_period_end=(
                subscription.current_period_end.isoformat()
                if subscription.current_period_end else None
            ),
            subscription_tier=subscription.stripe_price_id,
        )
