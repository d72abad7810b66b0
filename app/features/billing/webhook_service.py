"""Webhook service for handling Stripe subscription events

Mirrors Stripe subscriptions into the subscriptions table, links tenants to
their Stripe customer and drives referral recording and rewards. Events are
applied with upserts keyed by stripe_subscription_id, so redelivery is safe.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import stripe

from app.config import STRIPE_API_VERSION
from app.features.billing.domain import SubscriptionStatus
from app.features.referrals.service import ReferralService
from app.infra.supabase.repositories import RepositoryFactory
from app.models.subscription import SubscriptionCreate, SubscriptionUpdate

logger = logging.getLogger(__name__)

SUBSCRIPTION_SYNC_EVENTS = (
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.resumed",
    "customer.subscription.trial_will_end",
)


class WebhookProcessingError(Exception):
    """An event could not be applied; Stripe should redeliver it"""


def _as_id(value: Any) -> Optional[str]:
    """Stripe fields hold either an id or an expanded object"""
    if value is None or isinstance(value, str):
        return value
    return value.get("id")


def _timestamp(value: Optional[int]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)


def _first_price_id(subscription: Dict[str, Any]) -> Optional[str]:
    items = (subscription.get("items") or {}).get("data") or []
    if not items:
        return None
    return (items[0].get("price") or {}).get("id")


def subscription_to_row(
    subscription: Dict[str, Any],
    tenant_id: int,
    stripe_customer_id: str,
) -> SubscriptionCreate:
    """Build the subscriptions row for a Stripe subscription object"""
    return SubscriptionCreate(
        tenant_id=tenant_id,
        stripe_subscription_id=subscription["id"],
        stripe_customer_id=stripe_customer_id,
        stripe_price_id=_first_price_id(subscription),
        status=subscription.get("status"),
        current_period_start=_timestamp(subscription.get("current_period_start")),
        current_period_end=_timestamp(subscription.get("current_period_end")),
        cancel_at_period_end=bool(subscription.get("cancel_at_period_end")),
    )


class BillingWebhookService:
    """Service for handling Stripe payment and subscription webhooks"""

    def __init__(self, repos: RepositoryFactory, stripe_api_key: str):
        self.repos = repos
        self.stripe_api_key = stripe_api_key
        self.referral_service = ReferralService(repos, stripe_api_key)

    def _stripe_options(self) -> Dict[str, str]:
        return {"api_key": self.stripe_api_key, "stripe_version": STRIPE_API_VERSION}

    def _retrieve_subscription(self, subscription_id: str) -> Dict[str, Any]:
        subscription = stripe.Subscription.retrieve(subscription_id, **self._stripe_options())
        if not subscription:
            raise WebhookProcessingError(f"Could not retrieve subscription {subscription_id} from Stripe")
        return subscription.to_dict()

    async def handle_webhook_event(self, event_type: str, event_data: Dict[str, Any], event_id: str) -> None:
        """
        Route webhook events to appropriate handlers

        Args:
            event_type: Stripe event type (e.g., 'checkout.session.completed')
            event_data: Stripe event data object
            event_id: Stripe event ID, for logging
        """
        logger.info(f"BillingWebhookService: Handling {event_type} (ID: {event_id})")

        if event_type == "checkout.session.completed":
            await self.handle_checkout_session_completed(event_data)

        elif event_type in SUBSCRIPTION_SYNC_EVENTS:
            await self.handle_subscription_changed(event_data)

        elif event_type == "customer.subscription.deleted":
            await self.handle_subscription_deleted(event_data)

        elif event_type == "invoice.payment_succeeded":
            await self.handle_invoice_payment_succeeded(event_data)

        elif event_type == "invoice.payment_failed":
            await self.handle_invoice_payment_failed(event_data)

        else:
            logger.info(f"BillingWebhookService: Unhandled event type {event_type}")

    # ============================================================================
    # TENANT RESOLUTION
    # ============================================================================

    async def _tenant_id_for_user(self, supabase_user_id: str) -> int:
        app_user = await self.repos.users.find_by_auth_user_id(supabase_user_id)
        if not app_user or app_user.tenant_id is None:
            raise WebhookProcessingError(
                f"Could not find user or tenant_id for supabase_auth_user_id {supabase_user_id}"
            )
        return app_user.tenant_id

    async def _tenant_id_for_customer(self, stripe_customer_id: str, subscription_id: str) -> int:
        """Tenant linked to the customer, else the tenant of an already-mirrored subscription"""
        tenant = await self.repos.tenants.find_by_stripe_customer_id(stripe_customer_id)
        if tenant:
            return tenant.id

        existing = await self.repos.subscriptions.find_by_stripe_subscription_id(subscription_id)
        if existing:
            return existing.tenant_id

        raise WebhookProcessingError(
            f"Could not find tenant for customer {stripe_customer_id} or subscription {subscription_id}"
        )

    async def _sync_subscription(
        self,
        subscription: Dict[str, Any],
        tenant_id: int,
        stripe_customer_id: str,
    ) -> None:
        row = subscription_to_row(subscription, tenant_id, stripe_customer_id)
        saved = await self.repos.subscriptions.upsert_from_stripe(row)
        logger.info(
            f"BillingWebhookService: Upserted subscription {row.stripe_subscription_id} "
            f"for tenant {tenant_id} (status={row.status}, id={saved.id})"
        )

    # ============================================================================
    # EVENT HANDLERS
    # ============================================================================

    async def handle_checkout_session_completed(self, session: Dict[str, Any]) -> None:
        """
        Handle checkout.session.completed - first subscription for a tenant

        Records the referral when the session carried a referral_code, mirrors
        the subscription and links the tenant to the Stripe customer if it has
        none yet.
        """
        subscription_id = _as_id(session.get("subscription"))
        stripe_customer_id = _as_id(session.get("customer"))

        if session.get("mode") != "subscription" or not subscription_id or not stripe_customer_id:
            logger.info("BillingWebhookService: Skipping checkout session without subscription or customer")
            return

        subscription = self._retrieve_subscription(subscription_id)
        metadata = session.get("metadata") or {}

        referral_code = metadata.get("referral_code")
        if referral_code:
            await self.referral_service.record_checkout_referral(
                referral_code,
                stripe_customer_id,
                subscription_id,
                session_id=session.get("id"),
            )

        supabase_user_id = metadata.get("supabase_user_id")
        if not supabase_user_id:
            if metadata.get("requires_account_creation") == "true":
                # Accounts for marketing-site signups are provisioned by the main app
                logger.warning(
                    f"BillingWebhookService: Session {session.get('id')} requires account creation; "
                    f"leaving subscription {subscription_id} for the provisioning flow"
                )
                return
            raise WebhookProcessingError("supabase_user_id not found in checkout session metadata")

        tenant_id = await self._tenant_id_for_user(supabase_user_id)
        await self._sync_subscription(subscription, tenant_id, stripe_customer_id)

        if await self.repos.tenants.link_stripe_customer(tenant_id, stripe_customer_id):
            logger.info(f"BillingWebhookService: Linked tenant {tenant_id} to customer {stripe_customer_id}")

    async def handle_subscription_changed(self, subscription: Dict[str, Any]) -> None:
        """Handle customer.subscription.created/updated/resumed/trial_will_end"""
        stripe_customer_id = _as_id(subscription.get("customer"))
        if not stripe_customer_id:
            raise WebhookProcessingError("Stripe Customer ID not found in subscription object")

        tenant_id = await self._tenant_id_for_customer(stripe_customer_id, subscription["id"])
        await self._sync_subscription(subscription, tenant_id, stripe_customer_id)

    async def handle_subscription_deleted(self, subscription: Dict[str, Any]) -> None:
        """Handle customer.subscription.deleted - record Stripe's terminal status"""
        update = SubscriptionUpdate(
            status=subscription.get("status"),
            cancel_at_period_end=bool(subscription.get("cancel_at_period_end")),
        )
        updated = await self.repos.subscriptions.update_by_stripe_subscription_id(subscription["id"], update)
        if updated:
            logger.info(f"BillingWebhookService: Subscription {subscription['id']} marked {update.status}")
        else:
            logger.warning(f"BillingWebhookService: Deleted subscription {subscription['id']} is not mirrored")

    async def handle_invoice_payment_succeeded(self, invoice: Dict[str, Any]) -> None:
        """
        Handle invoice.payment_succeeded for renewals

        Only subscription_cycle invoices refresh the mirror; they are also the
        point where an annual referral qualifies for the referrer's reward.
        """
        subscription_id = _as_id(invoice.get("subscription"))
        stripe_customer_id = _as_id(invoice.get("customer"))

        if not subscription_id or not stripe_customer_id or invoice.get("billing_reason") != "subscription_cycle":
            logger.info("BillingWebhookService: Skipping invoice that is not a subscription renewal")
            return

        subscription = self._retrieve_subscription(subscription_id)
        tenant_id = await self._tenant_id_for_customer(stripe_customer_id, subscription_id)
        await self._sync_subscription(subscription, tenant_id, stripe_customer_id)

        referral_code = (
            (invoice.get("metadata") or {}).get("referral_code")
            or (subscription.get("metadata") or {}).get("referral_code")
        )
        if referral_code:
            await self.referral_service.reward_renewal(referral_code, stripe_customer_id, subscription)

    async def handle_invoice_payment_failed(self, invoice: Dict[str, Any]) -> None:
        """Handle invoice.payment_failed - mark the subscription past_due"""
        subscription_id = _as_id(invoice.get("subscription"))
        if not subscription_id or not invoice.get("customer"):
            logger.info("BillingWebhookService: Invoice has no subscription, skipping")
            return

        await self.repos.subscriptions.update_by_stripe_subscription_id(
            subscription_id,
            SubscriptionUpdate(status=SubscriptionStatus.PAST_DUE.value),
        )
        logger.info(f"BillingWebhookService: Subscription {subscription_id} marked past_due")
